import logging
from urllib.parse import urlparse

import requests

from tapflow.core.config import settings

logger = logging.getLogger(__name__)


def website_domain(website: str):
    """'https://www.acme.com/about' -> 'acme.com'"""
    if not website:
        return None
    if "://" not in website:
        website = f"https://{website}"
    host = urlparse(website).hostname
    if not host:
        return None
    return host[4:] if host.startswith("www.") else host


class ContactFinder:
    """
    Finds people at a company domain. Uses Hunter.io domain search when
    HUNTER_API_KEY is set, otherwise returns a single placeholder owner.
    """

    def __init__(self):
        self.api_url = settings.HUNTER_API_URL
        self.api_key = settings.HUNTER_API_KEY

    def find_contacts(self, website: str) -> list[dict]:
        domain = website_domain(website)
        if not domain:
            return []

        if not self.api_key:
            logger.info(f"Searching contacts (mock) at: {domain}")
            return [{
                "name": "John Smith",
                "first_name": "John",
                "last_name": "Smith",
                "email": f"john@{domain}",
                "title": "Owner",
                "is_primary": True,
            }]

        return self._hunter_domain_search(domain)

    def _hunter_domain_search(self, domain: str) -> list[dict]:
        try:
            response = requests.get(
                self.api_url,
                params={"domain": domain, "api_key": self.api_key, "limit": 5},
                timeout=15,
            )
            response.raise_for_status()
            emails = response.json().get("data", {}).get("emails", [])

        except requests.exceptions.RequestException as e:
            logger.error(f"🔌 Hunter lookup failed for {domain}: {e}")
            return []

        contacts = []
        for i, e in enumerate(emails):
            first = e.get("first_name")
            last = e.get("last_name")
            name = " ".join(p for p in (first, last) if p) or None
            contacts.append({
                "name": name,
                "first_name": first,
                "last_name": last,
                "email": e.get("value"),
                "email_verified": (e.get("verification") or {}).get("status") == "valid",
                "title": e.get("position"),
                "linkedin_url": e.get("linkedin"),
                "phone": e.get("phone_number"),
                "is_primary": i == 0,
            })

        logger.info(f"📇 Hunter returned {len(contacts)} contacts for {domain}")
        return contacts


def analyze_tech_stack(website: str):
    """Placeholder until a BuiltWith / crawler integration exists."""
    if not website:
        return None

    logger.info(f"Analyzing tech stack for: {website}")
    return {
        "cms": "WordPress",
        "ecommerce": None,
        "analytics": ["Google Analytics"],
        "marketing": [],
    }
