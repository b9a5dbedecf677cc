"""Decide whether a pull request gets an automated review.

Two gates run before any model call:

- ``should_review`` looks at the webhook action and draft state.
- ``evaluate_size`` looks at how much the PR changes. Hard limits skip the
  review and explain why; softer thresholds still review but prepend a warning.
"""

from dataclasses import dataclass

from cyclone_bot.models.context import ChangeSetStats

REVIEW_ACTIONS = frozenset({"opened", "ready_for_review"})


def should_review(action: str, is_draft: bool) -> bool:
    """Whether a pull_request event should trigger a review.

    Drafts are never reviewed. ``synchronize`` (a push to an open PR) is not a
    review action.
    """
    if is_draft:
        return False
    return action in REVIEW_ACTIONS


@dataclass(frozen=True)
class SizeThresholds:
    """Hard limits and warning thresholds for PR size."""

    max_files: int = 25
    max_additions: int = 800
    max_total_changes: int = 1200
    warn_files: int = 20
    warn_additions: int = 400


@dataclass(frozen=True)
class Proceed:
    """Review the PR, optionally prefixing the summary with a warning."""

    warning: str = ""

    @property
    def should_review(self) -> bool:
        return True


@dataclass(frozen=True)
class Skip:
    """Do not review; post ``message`` as a plain comment instead."""

    message: str

    @property
    def should_review(self) -> bool:
        return False


SizeVerdict = Proceed | Skip


_FILES_SKIP_TEMPLATE = """## 🌪️ Cyclone Notice

**PR Too Large for Automated Review**

This PR modifies **{files} files**, which exceeds our limit of {limit} files for automated review.

**Why we skip large PRs:**
- 🎯 **Review Quality**: Large PRs are harder to review thoroughly
- 🧠 **Cognitive Load**: Smaller PRs are easier for humans to understand
- 🐛 **Bug Detection**: Issues are easier to spot in focused changes
- 🚀 **Faster Iteration**: Smaller PRs get merged faster

**Suggestions:**
- Consider breaking this into smaller, focused PRs
- Each PR should ideally change < 15 files and < 400 lines
- Group related changes together (e.g., "Add user authentication", "Update API endpoints")

*Happy to review once split into smaller chunks!* 🌪️"""

_ADDITIONS_SKIP_TEMPLATE = """## 🌪️ Cyclone Notice

**PR Too Large for Automated Review**

This PR adds **{additions} lines**, which exceeds our limit of {limit} lines for automated review.

**Large PRs are challenging because:**
- 🔍 **Review Thoroughness**: Hard to catch all issues in large changes
- ⏱️ **Review Time**: Takes much longer to review properly
- 🤔 **Context Switching**: Difficult to keep all changes in mind
- 🔄 **Merge Conflicts**: Larger PRs are more likely to conflict

**Best Practices:**
- Aim for PRs with < 400 lines of additions
- Split features into logical, reviewable chunks
- Consider feature flags for large features

*Ready to provide detailed feedback on smaller PRs!* 🌪️"""

_TOTAL_SKIP_TEMPLATE = """## 🌪️ Cyclone Notice

**PR Too Large for Automated Review**

This PR has **{total} total changes** (+{additions}, -{deletions}), exceeding our limit of {limit} changes.

**Recommendation**: Break this into smaller, focused PRs for better review quality and faster merge times.

*Each PR should tell a focused story about one specific change.* 🌪️"""

_WARNING_TEMPLATE = """**⚠️ Large PR Warning:**
{lines}

*Smaller PRs are easier to review thoroughly and merge faster.*

---

"""


def evaluate_size(
    stats: ChangeSetStats,
    thresholds: SizeThresholds = SizeThresholds(),
) -> SizeVerdict:
    """Classify a change set as too large, large, or fine.

    Hard limits are checked in order (files, additions, total changes) and the
    first one exceeded decides the skip message.

    Args:
        stats: Files changed, additions and deletions of the PR
        thresholds: Limits to apply

    Returns:
        Skip with an explanation, or Proceed with a (possibly empty) warning
    """
    if stats.files_changed > thresholds.max_files:
        return Skip(
            _FILES_SKIP_TEMPLATE.format(files=stats.files_changed, limit=thresholds.max_files)
        )

    if stats.additions > thresholds.max_additions:
        return Skip(
            _ADDITIONS_SKIP_TEMPLATE.format(
                additions=stats.additions, limit=thresholds.max_additions
            )
        )

    if stats.total_changes > thresholds.max_total_changes:
        return Skip(
            _TOTAL_SKIP_TEMPLATE.format(
                total=stats.total_changes,
                additions=stats.additions,
                deletions=stats.deletions,
                limit=thresholds.max_total_changes,
            )
        )

    warnings = []
    if stats.files_changed > thresholds.warn_files:
        warnings.append(
            f"📁 **{stats.files_changed} files changed** (consider < {thresholds.warn_files})"
        )
    if stats.additions > thresholds.warn_additions:
        warnings.append(
            f"📈 **{stats.additions} lines added** (consider < {thresholds.warn_additions})"
        )

    if not warnings:
        return Proceed()

    return Proceed(warning=_WARNING_TEMPLATE.format(lines="\n".join(warnings)))
