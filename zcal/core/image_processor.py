"""Base64 image validation and size helpers."""

import math
import re

DATA_URL_PREFIX = re.compile(r"^data:(image/\w+);base64,")
BASE64_PATTERN = re.compile(r"^[A-Za-z0-9+/]*={0,2}$")

DEFAULT_MEDIA_TYPE = "image/jpeg"


class ImageProcessor:
    """Static helpers for base64-encoded images, bare or as data URLs."""

    @staticmethod
    def clean_base64_string(base64_string: str) -> str:
        """Strip a data URL prefix, if any."""
        return DATA_URL_PREFIX.sub("", base64_string, count=1)

    @staticmethod
    def media_type(base64_string: str) -> str:
        """Media type declared by a data URL prefix, else image/jpeg."""
        match = DATA_URL_PREFIX.match(base64_string)
        return match.group(1) if match else DEFAULT_MEDIA_TYPE

    @classmethod
    def validate_base64_image(cls, base64_string: str) -> bool:
        base64_data = cls.clean_base64_string(base64_string)
        return bool(base64_data) and BASE64_PATTERN.match(base64_data) is not None

    @classmethod
    def estimate_image_size(cls, base64_string: str) -> int:
        """
        Decoded size in bytes.

        Four base64 characters carry three bytes; trailing '=' padding
        removes one byte each (RFC 4648).
        """
        clean = cls.clean_base64_string(base64_string)
        if clean.endswith("=="):
            padding = 2
        elif clean.endswith("="):
            padding = 1
        else:
            padding = 0
        size = math.ceil(len(clean) * 3 / 4) - padding
        return max(size, 0)

    @classmethod
    def validate_image_size(cls, base64_string: str, max_size_mb: float = 5) -> bool:
        size_mb = cls.estimate_image_size(base64_string) / (1024 * 1024)
        return size_mb <= max_size_mb
