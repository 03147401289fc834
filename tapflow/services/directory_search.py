"""
Business directory lookups used by discovery.

Both sources are placeholders until the Google Places and Yelp Fusion
integrations land: Google Maps returns two deterministic sample businesses,
Yelp returns nothing.
"""

import logging

logger = logging.getLogger(__name__)


def search_google_maps(business_type: str, location: str, radius_miles: int = 25) -> list[dict]:
    logger.info(f"🗺️  Searching Google Maps for: {business_type} in {location} ({radius_miles} mi)")

    return [
        {
            "company_name": f"Sample {business_type} 1",
            "address": f"123 Main St, {location}",
            "phone": "555-0100",
            "website": "https://example1.com",
            "source_id": "gm_sample_1",
        },
        {
            "company_name": f"Sample {business_type} 2",
            "address": f"456 Oak Ave, {location}",
            "phone": "555-0200",
            "website": "https://example2.com",
            "source_id": "gm_sample_2",
        },
    ]


def search_yelp(business_type: str, location: str, radius_miles: int = 25) -> list[dict]:
    logger.info(f"🔎 Searching Yelp for: {business_type} in {location} ({radius_miles} mi)")
    return []


# source name -> search function
DIRECTORY_SOURCES = {
    "google_maps": search_google_maps,
    "yelp": search_yelp,
}


def search_all(business_type: str, location: str, radius_miles: int = 25) -> list[dict]:
    """Runs every source and tags each result with its source name."""
    results = []
    for source, search in DIRECTORY_SOURCES.items():
        for r in search(business_type, location, radius_miles):
            results.append({**r, "source": source})
    return results
