import re

# Placeholder local parts that never belong to a real person
BLACKLISTED_LOCAL_PARTS = {
    "sample", "example", "test", "noreply", "no-reply",
    "donotreply", "dummy", "fake", "spam", "abc", "xyz", "demo",
}

# Placeholder / throwaway domains
BLACKLISTED_DOMAINS = {
    "example.com", "example.org", "example.net",
    "test.com", "test.org",
    "domain.com", "yourdomain.com", "yoursite.com",
    "gmail.con", "gamil.com", "gmal.com",  # Common typos
    "hotmail.con", "yaho.com", "yahooo.com",
    "tempmail.com", "mailinator.com", "guerrillamail.com",
    "10minutemail.com", "throwaway.com", "fakeinbox.com",
}

STRICT_EMAIL_REGEX = re.compile(
    r"^[a-zA-Z0-9][a-zA-Z0-9_.+-]*"   # local part: must start with alphanum
    r"@"
    r"[a-zA-Z0-9-]+"                   # domain name
    r"(\.[a-zA-Z0-9-]+)*"              # subdomains
    r"\.[a-zA-Z]{2,24}$"               # TLD
)


def is_valid_email(raw: str) -> bool:
    if not raw or not isinstance(raw, str):
        return False

    email = raw.strip().lower()

    parts = email.split("@")
    if len(parts) != 2:
        return False

    local, domain = parts

    if not STRICT_EMAIL_REGEX.match(email):
        return False
    if domain in BLACKLISTED_DOMAINS:
        return False
    if local in BLACKLISTED_LOCAL_PARTS:
        return False
    if domain.endswith((".png", ".jpg", ".jpeg", ".webp", ".gif")):
        return False

    return True


def clean_email(raw: str):
    if is_valid_email(raw):
        return raw.strip().lower()
    return None
