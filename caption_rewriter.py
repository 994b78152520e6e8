import asyncio
import logging
from dataclasses import dataclass

from openai import AsyncOpenAI, OpenAIError
from pymongo.errors import PyMongoError

from caption_utils import normalize

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You tidy up captions of movie and web-series uploads. Reply with one line "
    "in the form: Title (Year) Quality Language. Keep season/episode markers "
    "like S01E02. Drop channel names, links and emoji. Do not add anything else."
)


@dataclass
class RewriteSummary:
    total: int = 0
    rewritten: int = 0
    failed: int = 0

    def __str__(self):
        return f"Rewrote {self.rewritten} of {self.total} captions ({self.failed} failed)."


class CaptionRewriter:
    def __init__(self, client: AsyncOpenAI, model: str, delay: float = 1.0):
        self.client = client
        self.model = model
        self.delay = delay

    async def rewrite(self, caption: str) -> str:
        resp = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": caption},
            ],
            temperature=0,
            max_tokens=120,
        )
        if not resp.choices:
            return ""
        return (resp.choices[0].message.content or "").strip()

    async def rewrite_all(self, catalog) -> RewriteSummary:
        """Rewrite every caption in the catalog, one at a time.

        A failing item is logged and skipped; the loop always runs to the end.
        """
        summary = RewriteSummary()
        async for record in catalog.iter_all():
            summary.total += 1
            try:
                new_caption = normalize(await self.rewrite(record.caption))
                if not new_caption:
                    raise ValueError("empty rewrite")
                await catalog.update_caption(record.id, new_caption)
                summary.rewritten += 1
                logger.info(f"Rewrote {record.id}: {record.caption!r} -> {new_caption!r}")
            except (OpenAIError, PyMongoError, ValueError) as e:
                summary.failed += 1
                logger.warning(f"Caption rewrite failed for {record.id}: {e}")
            await asyncio.sleep(self.delay)
        logger.info(str(summary))
        return summary
