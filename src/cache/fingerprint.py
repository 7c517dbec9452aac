# src/cache/fingerprint.py - v4
"""Request fingerprinting for the result cache.

The fingerprint is a SHA-256 over the prompt, the aspect ratio, a digest of
the optional reference image and the generation parameters that shape the
output (model, image size, language mode). Identical requests map to one
entry and any change in those inputs maps to another.
"""

from __future__ import annotations

import hashlib

from pmdesigner.cache.models import RequestFingerprint

# Unit separator keeps ("ab", "c") and ("a", "bc") apart.
_SEPARATOR = "\x1f"


def reference_digest(reference_image: str | bytes | None) -> str | None:
    """SHA-256 of a reference image (data URI text or raw bytes)."""
    if reference_image is None or reference_image in ("", b""):
        return None
    raw = reference_image.encode("utf-8") if isinstance(reference_image, str) else reference_image
    return hashlib.sha256(raw).hexdigest()


def compute_fingerprint(
    prompt: str,
    aspect_ratio: str,
    reference_image: str | bytes | None = None,
    *,
    model: str = "",
    image_size: str = "",
    language: str = "",
) -> RequestFingerprint:
    """Derive the cache fingerprint of an image request.

    Args:
        prompt: Prompt text; surrounding whitespace is ignored.
        aspect_ratio: Requested aspect ratio, e.g. "1:1".
        reference_image: Optional reference image as data URI or bytes.
        model: Image model name.
        image_size: Output resolution, e.g. "1K".
        language: Language mode the prompt is enhanced for.

    Returns:
        RequestFingerprint, deterministic for identical inputs.
    """
    ref_digest = reference_digest(reference_image)
    material = _SEPARATOR.join(
        [
            prompt.strip(),
            aspect_ratio.strip(),
            ref_digest or "",
            model.strip(),
            image_size.strip(),
            language.strip(),
        ]
    )
    digest = hashlib.sha256(material.encode("utf-8")).hexdigest()
    return RequestFingerprint(
        digest=digest,
        aspect_ratio=aspect_ratio,
        reference_digest=ref_digest,
    )
