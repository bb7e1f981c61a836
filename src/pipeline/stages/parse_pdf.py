# src/pipeline/stages/parse_pdf.py — v1
"""parse_pdf: document text, then (standard/deep) project fields from it."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from buildcheck.analysis.pdf_text import PdfExtractionError, extract_pdf_text
from buildcheck.core.models import ProjectRecord
from buildcheck.pipeline.plugin_kit.base_stage import BaseStage
from buildcheck.pipeline.plugin_kit.models import StageContext, StageOutput
from buildcheck.pipeline.stages.common import ask_json
from buildcheck.sequencing.context import cap

logger = logging.getLogger(__name__)


def clean_fields(raw: Any) -> dict[str, Any]:
    """Keep scalar, non-empty values whose type fits the project record."""
    if not isinstance(raw, dict):
        return {}
    fields: dict[str, Any] = {}
    for key, value in raw.items():
        if not isinstance(key, str) or isinstance(value, (dict, list)) or not value:
            continue
        if key in ProjectRecord.model_fields and key != "attributes":
            try:
                value = getattr(ProjectRecord.model_validate({key: value}), key)
            except ValidationError:
                logger.debug("Dropping document field %s=%r", key, value)
                continue
        fields[key] = value
    return fields


class ParsePdfStage(BaseStage):

    @property
    def name(self) -> str:
        return "parse_pdf"

    @property
    def uses_llm(self) -> bool:
        return True

    async def execute(self, ctx: StageContext) -> StageOutput:
        documents = ctx.files.documents
        if not documents:
            return StageOutput.skip("no documents")

        out = StageOutput()
        texts: dict[str, str] = {}
        for i, f in enumerate(documents):
            await ctx.report_partial(0.6 * i / len(documents), f"Extracting text from {f.name}")
            try:
                text = extract_pdf_text(f.content, f.name)
            except PdfExtractionError as e:
                out.warnings.append(f"parse_pdf: {e}")
                continue
            if text:
                texts[f.name] = text
            else:
                logger.info("%s has no text layer", f.name)
        out.artifacts["document_texts"] = texts

        if not texts or ctx.depth == "quick" or ctx.llm is None:
            return out

        await ctx.report_partial(0.7, "Reading project data from documents")
        payload = cap(
            "\n\n".join(f"=== {name} ===\n{text}" for name, text in texts.items()),
            ctx.settings.prompt_context_chars,
        )
        try:
            parsed, usage = await ask_json(
                ctx, "documents.parse", "document_fields", payload, default={"fields": {}}
            )
        except Exception as e:
            out.warnings.append(f"parse_pdf: document analysis unavailable: {e}")
            return out

        out.token_usage = usage
        if parsed.warning:
            out.warnings.append(f"parse_pdf: {parsed.warning}")
        changed = ctx.project.apply_fields(clean_fields(parsed.data.get("fields")))
        if changed:
            logger.info("Documents supplied project fields: %s", ", ".join(changed))
            out.project = ctx.project
        return out
