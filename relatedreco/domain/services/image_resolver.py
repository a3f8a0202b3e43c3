# relatedreco/domain/services/image_resolver.py
from urllib.parse import quote

from relatedreco.domain.models.product import Candidate
from relatedreco.domain.services.constants import PLACEHOLDER_DEFAULT_TEXT, PLACEHOLDER_IMAGE_URL

# Characters encodeURIComponent leaves untouched (besides alphanumerics and "-_.~")
_URI_COMPONENT_SAFE = "!*'()"


def _present(value) -> bool:
    return isinstance(value, str) and value.strip() != ""


def placeholder_image(name: str | None) -> str:
    text = name if _present(name) else PLACEHOLDER_DEFAULT_TEXT
    return PLACEHOLDER_IMAGE_URL.format(text=quote(text, safe=_URI_COMPONENT_SAFE))


def resolve_image(candidate: Candidate) -> str:
    """
    Pick the display image for a product, first match wins:
      1) the product's own image
      2) the first variant's image
      3) the first variant's first additional image
      4) a placeholder carrying the product name
    """
    if _present(candidate.image):
        return candidate.image

    if candidate.variants:
        first = candidate.variants[0]
        if _present(first.image):
            return first.image
        if first.additional_images and _present(first.additional_images[0]):
            return first.additional_images[0]

    return placeholder_image(candidate.name)
