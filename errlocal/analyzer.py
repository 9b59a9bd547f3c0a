"""
AI error analysis for errlocal.

Turns captured stderr (plus an optional code window around the failing line)
into a structured Analysis with hints, a final explanation and, when the
model can pinpoint it, a single-line fix.
"""

import json
import logging
import os
import re
from typing import Protocol

from pydantic import ValidationError

from errlocal.context import CodeContext
from errlocal.exceptions import AnalyzerError
from errlocal.state import Analysis

logger = logging.getLogger(__name__)

GROQ_BASE_URL = "https://api.groq.com/openai/v1"

DEFAULT_MODELS = {
    "groq": "openai/gpt-oss-120b",
    "openai": "gpt-4o-mini",
    "claude": "claude-3-5-sonnet-20241022",
    "fake": "fake",
}

# Cap on stderr sent to the model; long build logs are mostly noise
MAX_ERROR_CHARS = 12000

SYSTEM_PROMPT = "You are an expert developer assistant that outputs JSON."


class Analyzer(Protocol):
    def analyze(
        self, error_text: str, command_line: str, code_context: CodeContext | None = None
    ) -> Analysis: ...


def build_prompt(error_text: str, command_line: str, code_context: CodeContext | None) -> str:
    """Build the user prompt for the analysis call."""
    if len(error_text) > MAX_ERROR_CHARS:
        error_text = error_text[-MAX_ERROR_CHARS:]

    context_block = ""
    fix_block = ""
    if code_context is not None:
        context_block = f"""
Code context from {code_context.file_path} (line {code_context.line_number} is marked with '>'):
{code_context.code_snippet}
"""
        fix_block = f""",
    "fixAction": {{
        "type": "replace_line",
        "filePath": {json.dumps(code_context.file_path)},
        "lineNumber": {code_context.line_number},
        "code": "The full corrected content of that single line, without indentation",
        "description": "What the change does"
    }}"""

    return f"""Analyze the following error output from the command "{command_line}".

Provide your response in strict JSON format with the following structure:
{{
    "errorType": "The type of error (e.g., TypeError, SyntaxError)",
    "likelyCause": "A brief explanation of why this happened",
    "suggestedFix": "A specific code fix suggestion",
    "confidence": "Low, Medium, or High",
    "hints": [
        "Hint 1: A brief, high-level pointer (e.g., check assumptions).",
        "Hint 2: A more specific pointer (e.g., check async/await).",
        "Hint 3: A very specific clue about the code logic."
    ],
    "finalExplanation": "A detailed explanation of the error and how to fix it."{fix_block}
}}
{"Only include fixAction if replacing that one line fixes the error; otherwise set it to null." if fix_block else ""}
{context_block}
Error Output:
{error_text}
"""


def _extract_json_content(content: str) -> str:
    """Strip markdown fences and surrounding prose from a model response."""
    content = content.strip()
    match = re.search(r"```(?:\w+)?\s*\n?(.*?)```", content, re.DOTALL)
    if match:
        content = match.group(1).strip()
    if not content.startswith("{"):
        start, end = content.find("{"), content.rfind("}")
        if start != -1 and end > start:
            content = content[start : end + 1]
    return content


def parse_analysis(content: str) -> Analysis:
    """
    Parse a model response into an Analysis.

    Raises:
        AnalyzerError: If the response is not valid analysis JSON.
    """
    try:
        analysis = Analysis.model_validate_json(_extract_json_content(content))
    except ValidationError as e:
        raise AnalyzerError(f"Could not parse analysis response: {e}") from e

    # A fix without all three fields cannot be applied; drop it here
    fix = analysis.fix_action
    if fix is not None and not (fix.file_path and fix.line_number and fix.code):
        logger.debug("Discarding incomplete fixAction: %s", fix)
        analysis.fix_action = None
    return analysis


class ErrorAnalyzer:
    """Analyzes failures with an LLM provider (groq, openai, claude or fake)."""

    def __init__(
        self,
        api_key: str,
        provider: str = "groq",
        model: str | None = None,
        timeout: float = 30.0,
    ):
        """
        Args:
            api_key: API key for the provider.
            provider: "groq", "openai", "claude" or "fake".
            model: Optional model override.
            timeout: Request timeout in seconds.

        Raises:
            AnalyzerError: If no API key is configured or the provider is unknown.
        """
        if provider not in DEFAULT_MODELS:
            raise AnalyzerError(f"Unsupported provider: {provider}")
        if not api_key and provider != "fake":
            raise AnalyzerError(f"No API key found for provider '{provider}'")

        self.api_key = api_key
        self.provider = provider
        self.model = model or DEFAULT_MODELS[provider]
        self.timeout = timeout
        self.client = None
        self._initialize_client()

    def _initialize_client(self):
        if self.provider in ("openai", "groq"):
            from openai import OpenAI

            logging.getLogger("openai").setLevel(logging.WARNING)
            logging.getLogger("httpx").setLevel(logging.WARNING)
            base_url = GROQ_BASE_URL if self.provider == "groq" else None
            self.client = OpenAI(api_key=self.api_key, base_url=base_url, timeout=self.timeout)
        elif self.provider == "claude":
            from anthropic import Anthropic

            # Suppress noisy retry logging from anthropic client
            logging.getLogger("anthropic").setLevel(logging.WARNING)
            logging.getLogger("anthropic._base_client").setLevel(logging.WARNING)
            self.client = Anthropic(api_key=self.api_key, timeout=self.timeout)

    def _call_llm(self, system_prompt: str, user_prompt: str) -> str:
        if self.provider in ("openai", "groq"):
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=0.2,
                response_format={"type": "json_object"},
            )
            try:
                content = response.choices[0].message.content or ""
            except (IndexError, AttributeError):
                content = ""
            return content.strip()

        if self.provider == "claude":
            response = self.client.messages.create(
                model=self.model,
                max_tokens=2048,
                temperature=0.2,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
            )
            try:
                text = getattr(response.content[0], "text", None) or ""
            except (IndexError, AttributeError):
                text = ""
            return text.strip()

        # fake provider, used by tests and offline demos
        fake_response = os.environ.get("ERRLOCAL_FAKE_RESPONSE", "")
        if fake_response:
            return fake_response
        return json.dumps(
            {
                "errorType": "Error",
                "likelyCause": "Test mode response",
                "confidence": "Low",
                "hints": ["Read the last line of the error output."],
                "finalExplanation": "Fake provider for testing.",
            }
        )

    def analyze(
        self, error_text: str, command_line: str, code_context: CodeContext | None = None
    ) -> Analysis:
        """
        Analyze a failure.

        Args:
            error_text: Captured stderr of the failing command.
            command_line: The command that was run.
            code_context: Optional code window around the failing line.

        Returns:
            The structured Analysis.

        Raises:
            AnalyzerError: If the API call fails or returns unusable output.
        """
        user_prompt = build_prompt(error_text, command_line, code_context)
        try:
            content = self._call_llm(SYSTEM_PROMPT, user_prompt)
        except Exception as e:
            raise AnalyzerError(f"LLM API call failed: {e}") from e

        if not content:
            raise AnalyzerError("LLM returned an empty response")
        analysis = parse_analysis(content)
        if not analysis.hints and not analysis.final_explanation:
            raise AnalyzerError("LLM response contained no hints or explanation")
        return analysis
