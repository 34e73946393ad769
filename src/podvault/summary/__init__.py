"""Gemini-powered episode summaries."""

from podvault.summary.gemini import GeminiFileClient, RemoteFile
from podvault.summary.guard import GenerationGuard, GenerationStatus
from podvault.summary.orchestrator import SummaryOrchestrator
from podvault.summary.prompts import DEFAULT_SUMMARY_PROMPT, resolve_prompt

__all__ = [
    "DEFAULT_SUMMARY_PROMPT",
    "GeminiFileClient",
    "GenerationGuard",
    "GenerationStatus",
    "RemoteFile",
    "SummaryOrchestrator",
    "resolve_prompt",
]
