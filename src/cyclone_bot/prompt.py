"""Build the review prompt sent to the model.

The template is plain text with five literal placeholders. Substitution is a
single literal pass, so diffs containing braces or ``$`` are safe.
The reply format described in the template is what ``cyclone_bot.parser``
understands; change them together.
"""

import logging
import re
from pathlib import Path

from cyclone_bot.config import Precision

logger = logging.getLogger(__name__)

TITLE_PLACEHOLDER = "{{title}}"
BODY_PLACEHOLDER = "{{body}}"
PRECISION_PLACEHOLDER = "{{precision}}"
DIFF_PLACEHOLDER = "{{diff}}"
CUSTOM_PROMPT_PLACEHOLDER = "{{custom_prompt}}"

PLACEHOLDERS = (
    TITLE_PLACEHOLDER,
    BODY_PLACEHOLDER,
    PRECISION_PLACEHOLDER,
    DIFF_PLACEHOLDER,
    CUSTOM_PROMPT_PLACEHOLDER,
)

_PLACEHOLDER_RE = re.compile("|".join(re.escape(p) for p in PLACEHOLDERS))

_PRECISION_GUIDELINES = {
    Precision.MINOR: """**Review Focus (Minor Precision):**
- Focus primarily on critical bugs and security issues
- Skip most style and formatting comments
- Be lenient with minor code quality issues
- Emphasize 🚫 **blocking** and ⚠️ **issue** categories""",
    Precision.MEDIUM: """**Review Focus (Medium Precision):**
- Balance between thoroughness and practicality
- Focus on significant issues while noting important style concerns
- Emphasize security, bugs, and maintainability
- Use ⚠️ **issue**, 💡 **suggestion**, and 🧰 **nit** categories appropriately""",
    Precision.STRICT: """**Review Focus (Strict Precision):**
- Review all aspects including style, performance, and maintainability
- Be thorough with naming conventions and code organization
- Suggest improvements for readability and best practices
- Use all categories including 🧰 **nit** and 💡 **suggestion**
- Consider long-term maintainability and team standards""",
}

DEFAULT_TEMPLATE = """You are Cyclone, an AI code review assistant. Please review this GitHub pull request and provide constructive feedback.

**PR Title:** {{title}}

**PR Description:** {{body}}

**Review Precision**: {{precision}}

**Code Changes:**
{{diff}}

Please provide:
1. A brief overall summary of the changes
2. Specific feedback categorized by type and priority
3. End with a short, lighthearted poem (2-4 lines) based on the changes made

**Review Guidelines:**
- Be constructive and actionable - explain the "why" behind suggestions
- Include code examples when suggesting alternatives
- Use collaborative language ("we could" vs "you should")
- Focus on logic correctness, security, maintainability, and team conventions
- Acknowledge good patterns when present

**Comment Categories - Use these prefixes:**
- 🧰 **nit**: Minor style/preference issues, non-blocking
- 💡 **suggestion**: Improvements that would be nice but aren't required
- ⚠️ **issue**: Problems that should be addressed before merging
- 🚫 **blocking**: Critical issues that must be fixed
- ❓ **question**: Seeking clarification about intent or approach

**Focus Areas - Use these prefixes when relevant:**
- 🎨 **style**: Formatting, naming conventions
- ⚡ **perf**: Performance concerns
- 🔒 **security**: Security-related issues
- 📚 **docs**: Documentation needs
- 🧪 **test**: Testing coverage or quality
- 🔧 **refactor**: Code organization improvements

**Response Structure:**
Please structure your response EXACTLY as follows:

SUMMARY: $$
A warm, engaging summary with emojis and thoughtful analysis including:
- Brief overall analysis of what this PR accomplishes
- Key changes made
- Impact assessment (what this means for the codebase)
- Good patterns you noticed
- Any overarching concerns or recommendations
$$

POEM: $$
A short, lighthearted poem (2-4 lines) inspired by the changes, formatted in italic.
$$

For any line-specific comments, use this EXACT format:
PR_COMMENT:filename:line_number: [emoji] **[category]**: $$
your comment here (can be multiple lines)
include code examples
$$

Examples:
PR_COMMENT:main.go:45: 🧰 **nit**: $$Consider a more descriptive name like 'userCount' instead of 'cnt'.$$
PR_COMMENT:utils.js:123: ⚠️ **issue**: $$This function needs error handling for the API call.$$
PR_COMMENT:api/handler.py:67: 🚫 **blocking**: 🔒 **security**: $$Potential SQL injection - use parameterized queries.$$

**IMPORTANT Rules:**
- Use SINGLE line numbers only, NOT ranges like "75-82"
- Line numbers refer to the new version of the file
- Always include the colon after **[category]**:
- Always use the $$ delimiters for all sections
- Keep general analysis in SUMMARY, use PR_COMMENT only for specific line feedback

{{custom_prompt}}

Be constructive, helpful, and focus on actionable feedback."""


def precision_guidelines(precision: Precision) -> str:
    """Guidance block for a precision level."""
    return _PRECISION_GUIDELINES.get(precision, _PRECISION_GUIDELINES[Precision.MEDIUM])


def load_template(template_path: Path | None) -> str:
    """Read the prompt template, falling back to the built-in one.

    Args:
        template_path: Template file, or None to use the built-in template

    Returns:
        Template text
    """
    if template_path is None:
        return DEFAULT_TEMPLATE

    try:
        return Path(template_path).read_text(encoding="utf-8")
    except OSError as e:
        logger.warning(f"Could not load prompt template from {template_path}, using fallback: {e}")
        return DEFAULT_TEMPLATE


def build_prompt(
    template: str,
    title: str,
    body: str,
    diff: str,
    precision: Precision,
    custom_prompt: str = "",
) -> str:
    """Fill the template's placeholders.

    Args:
        template: Template text containing the five placeholders
        title: PR title
        body: PR description
        diff: Diff text as produced by ``format_diff``
        precision: Review precision for this repository
        custom_prompt: Extra per-repository instructions (may be empty)

    Returns:
        The prompt to send to the model
    """
    values = {
        TITLE_PLACEHOLDER: title,
        BODY_PLACEHOLDER: body,
        PRECISION_PLACEHOLDER: precision_guidelines(precision),
        DIFF_PLACEHOLDER: diff,
        CUSTOM_PROMPT_PLACEHOLDER: custom_prompt,
    }

    # Single pass, so placeholder text inside a PR title or diff is left alone
    return _PLACEHOLDER_RE.sub(lambda match: values[match.group(0)], template)


class PromptBuilder:
    """Loads the template once and builds prompts from it."""

    def __init__(self, template_path: Path | None = None) -> None:
        """Initialize the builder.

        Args:
            template_path: Template file; missing or unreadable files use the default
        """
        self.template = load_template(template_path)

    def build(
        self,
        title: str,
        body: str,
        diff: str,
        precision: Precision,
        custom_prompt: str = "",
    ) -> str:
        """Build a prompt from the loaded template."""
        return build_prompt(
            self.template,
            title=title,
            body=body,
            diff=diff,
            precision=precision,
            custom_prompt=custom_prompt,
        )
