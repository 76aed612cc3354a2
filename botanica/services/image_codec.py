"""Bounded-size JPEG data URLs from raw captures."""

from __future__ import annotations

import asyncio
import base64
import io
from collections.abc import Sequence

import structlog
from PIL import Image, ImageOps, UnidentifiedImageError

DEFAULT_MAX_EDGE = 1024
DEFAULT_QUALITY = 70
DATA_URL_PREFIX = "data:image/jpeg;base64,"

_logger = structlog.get_logger("botanica.image_codec")


class CodecFailure(ValueError):
	"""Raised when a capture cannot be decoded as an image."""


def encode_image(raw: bytes, max_edge: int = DEFAULT_MAX_EDGE, quality: int = DEFAULT_QUALITY) -> str:
	"""Re-encode ``raw`` as JPEG with its longer edge capped at ``max_edge``."""
	try:
		with Image.open(io.BytesIO(raw)) as source:
			image = ImageOps.exif_transpose(source).convert("RGB")
		width, height = image.size
		longest = max(width, height)
		if longest > max_edge:
			scale = max_edge / longest
			size = (max(1, round(width * scale)), max(1, round(height * scale)))
			image = image.resize(size, Image.Resampling.LANCZOS)
		buffer = io.BytesIO()
		image.save(buffer, format="JPEG", quality=quality)
	except (OSError, Image.DecompressionBombError) as exc:
		raise CodecFailure(f"unreadable image: {exc}") from exc
	return DATA_URL_PREFIX + base64.b64encode(buffer.getvalue()).decode("ascii")


def data_url_payload(data_url: str) -> str:
	"""Base64 body of a data URL (the part after the comma)."""
	_, sep, payload = data_url.partition(",")
	if not sep or not payload:
		raise CodecFailure("not a base64 data URL")
	return payload


async def compress_image(raw: bytes, max_edge: int = DEFAULT_MAX_EDGE, quality: int = DEFAULT_QUALITY) -> str:
	return await asyncio.to_thread(encode_image, raw, max_edge, quality)


async def encode_batch(
	raws: Sequence[bytes],
	limit: int,
	max_edge: int = DEFAULT_MAX_EDGE,
	quality: int = DEFAULT_QUALITY,
) -> list[str]:
	"""Encode up to ``limit`` captures, dropping any that fail to decode."""
	encoded: list[str] = []
	for index, raw in enumerate(raws):
		if len(encoded) >= limit:
			_logger.info("image_batch_truncated", accepted=len(encoded), received=len(raws))
			break
		try:
			encoded.append(await compress_image(raw, max_edge, quality))
		except CodecFailure as exc:
			_logger.warning("image_dropped", index=index, error=str(exc))
	return encoded
