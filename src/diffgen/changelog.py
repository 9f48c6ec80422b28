"""Changelog generation through a chat-completion endpoint."""

import re

import httpx

from .errors import CompletionServiceError, EmptyCompletion, MissingCredential

EXPECTED_SECTIONS = ("What's new", "Impact", "Changes")

PROMPT_TEMPLATE = "\n".join(
    [
        "[INSTRUCTIONS]",
        "Task: Generate a changelog entry from the Git history. The response should strictly follow the "
        "structure below. Use only the information from the Git history.",
        "",
        "Output rules:",
        "- Output ONLY valid Markdown (no code block markers).",
        "- The structure must follow exactly this format:",
        "",
        "# <Heading summarizing the change>",
        '(Heading should be short and clear, e.g., "Adds Payout Details embedded component to the Account")',
        "",
        "## What's new",
        "<Brief description of what's newly introduced. Focus on new functionality, not internal details.>",
        "",
        "## Impact",
        '<Explain the practical effect on users, developers, or systems. Answer "why this matters.">',
        "",
        "## Changes",
        "<List the most essential code changes, snippets, or file modifications very concisely.>",
        "List all the files which changed and what changed in each of them.",
        "Include short code snippets where they make a change clearer.",
        "---",
        "Git History:",
        "",
    ]
)

_HEADING_RE = re.compile(r"^#{1,6}\s+(.+?)\s*#*\s*$", re.MULTILINE)


def build_prompt(history: str) -> str:
    """Return the instruction template followed by ``history`` verbatim."""
    return PROMPT_TEMPLATE + history


def _normalize_heading(text: str) -> str:
    return text.replace("’", "'").strip().lower()


def missing_sections(markdown: str) -> list[str]:
    """Expected ``##`` sections that do not appear as headings in ``markdown``."""
    headings = {_normalize_heading(m.group(1)) for m in _HEADING_RE.finditer(markdown or "")}
    return [name for name in EXPECTED_SECTIONS if _normalize_heading(name) not in headings]


def _auth_headers(auth_header: str, api_key: str) -> dict:
    if auth_header == "api-key":
        return {"api-key": api_key}
    return {"Authorization": f"Bearer {api_key}"}


def _extract_content(data) -> str:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return ""
    return content if isinstance(content, str) else ""


class ChangelogGenerator:
    """Sends one single-turn completion request per call to ``generate``."""

    def __init__(self, settings, api_key, client=None):
        if not api_key:
            raise MissingCredential()
        self.settings = settings
        self.api_key = api_key
        self._client = client

    def build_payload(self, prompt: str) -> dict:
        payload = {
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.settings.temperature,
            "max_tokens": self.settings.max_tokens,
        }
        if self.settings.model:
            payload["model"] = self.settings.model
        return payload

    def _post(self, payload: dict) -> httpx.Response:
        headers = {"Content-Type": "application/json", **_auth_headers(self.settings.auth_header, self.api_key)}
        if self._client is not None:
            return self._client.post(self.settings.endpoint, json=payload, headers=headers, timeout=self.settings.timeout)
        return httpx.post(self.settings.endpoint, json=payload, headers=headers, timeout=self.settings.timeout)

    def generate(self, history: str) -> str:
        payload = self.build_payload(build_prompt(history))
        try:
            response = self._post(payload)
        except httpx.RequestError as e:
            raise CompletionServiceError(None, str(e) or type(e).__name__)

        if not response.is_success:
            raise CompletionServiceError(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError:
            raise CompletionServiceError(response.status_code, f"response was not valid JSON: {response.text[:500]}")

        content = _extract_content(data)
        if not content.strip():
            raise EmptyCompletion()
        return content


def ensure_api_key(config, prompter):
    """Return ``config`` with a credential, asking for one if the environment had none."""
    if config.api_key:
        return config
    api_key = (prompter.read_secret("Enter OPENAI_API_KEY:") or "").strip()
    if not api_key:
        raise MissingCredential()
    return config.with_api_key(api_key)
