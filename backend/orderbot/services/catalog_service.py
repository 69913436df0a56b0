"""Commerce Manager catalog lookup for the interactive product-list message."""
import logging
from typing import List

import requests

from orderbot.core.config import Settings
from orderbot.core.exceptions import UpstreamError

logger = logging.getLogger(__name__)

# WhatsApp Cloud API limits for product_list messages
MAX_SECTION_TITLE = 24
MAX_SECTIONS = 10


def fetch_products(settings: Settings) -> List[dict]:
    """
    GET the catalog endpoint and return its `data` list.

    Raises:
        UpstreamError: endpoint not configured, network failure, non-2xx, or
        a body that isn't the expected JSON shape.
    """
    if not settings.COMMERCE_API_URL:
        raise UpstreamError("COMMERCE_API_URL is not configured")

    try:
        response = requests.get(
            settings.COMMERCE_API_URL,
            headers={"Authorization": f"Bearer {settings.WHATSAPP_TOKEN}"},
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )
    except requests.RequestException as e:
        raise UpstreamError(f"Catalog request failed: {e}") from e

    if not response.ok:
        raise UpstreamError(
            f"Catalog request returned {response.status_code}: {response.text[:200]}",
            status_code=response.status_code,
        )

    try:
        products = response.json().get("data") or []
    except (ValueError, AttributeError) as e:
        raise UpstreamError(f"Catalog response is not valid JSON: {e}") from e

    logger.info(f"[CATALOG] Fetched {len(products)} products")
    return products


def build_sections(products: List[dict]) -> List[dict]:
    """One section per product, keyed by the retailer id the catalog knows it by."""
    sections = []
    for product in products:
        retailer_id = product.get("retailer_id")
        if not retailer_id:
            logger.warning(f"[CATALOG] Skipping product without retailer_id: {product.get('name')!r}")
            continue
        title = (product.get("name") or str(retailer_id))[:MAX_SECTION_TITLE]
        sections.append({
            "title": title,
            "product_items": [{"product_retailer_id": retailer_id}],
        })

    if len(sections) > MAX_SECTIONS:
        logger.info(f"[CATALOG] Truncating {len(sections)} sections to {MAX_SECTIONS}")
        sections = sections[:MAX_SECTIONS]
    return sections
