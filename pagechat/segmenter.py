from __future__ import annotations

import logging
import re

from pagechat.errors import SegmentationError, UpstreamError
from pagechat.gemini_client import GeminiClient
from pagechat.models import ArticleSection
from pagechat.prompts import SEGMENT_SYSTEM

logger = logging.getLogger(__name__)

_BLANK_LINE_RE = re.compile(r"\n[ \t]*\n\s*")
_HEADING_RE = re.compile(r"^#+\s*")


def parse_sections(reply: str) -> list[ArticleSection]:
    """
    Splits a model reply into titled sections.
    Blocks missing a title or content are dropped, then ids are numbered 1..n in source order.
    """
    text = reply.replace("\r\n", "\n")

    kept: list[tuple[str, str]] = []
    for block in _BLANK_LINE_RE.split(text):
        title_line, _, rest = block.partition("\n")
        title = _HEADING_RE.sub("", title_line.strip()).strip()
        content = rest.strip()
        if title and content:
            kept.append((title, content))

    return [ArticleSection(id=i, title=t, content=c) for i, (t, c) in enumerate(kept, start=1)]


class Segmenter:
    def __init__(self, client: GeminiClient) -> None:
        self.client = client

    async def segment(self, text: str) -> list[ArticleSection]:
        try:
            reply = await self.client.generate_text(
                system=SEGMENT_SYSTEM,
                user=f"Please analyze this article and break it down into sections:\n\n{text}",
            )
        except UpstreamError as e:
            logger.error("Segmentation request failed: %s", e)
            raise SegmentationError(f"Segmentation failed: {e.message}", upstream_body=e.body) from e

        sections = parse_sections(reply)
        if not sections:
            raise SegmentationError("Model reply contained no usable sections", upstream_body=reply[:500])
        logger.info("Segmented %d chars into %d sections", len(text), len(sections))
        return sections
