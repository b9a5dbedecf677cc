"""Pytest configuration and shared fixtures."""

import pytest

from cyclone_bot.config import OrganizationConfig, Precision, RepositoryConfig, ReviewConfig
from cyclone_bot.models.context import ChangeSetStats, PullRequestInfo

SAMPLE_REPLY = """\
Here is my review.

SUMMARY: $$
This PR adds **user authentication** 🚀

- New login handler
- Password hashing
$$

POEM: $$
*Passwords hashed, tokens signed,*
*no plain text left behind.*
$$

PR_COMMENT:auth/login.py:12: ⚠️ **issue**: $$
This query interpolates user input.

```python
db.execute("SELECT * FROM users WHERE name = %s", (name,))
```
$$

PR_COMMENT:auth/login.py:30: 🧰 **nit**: 🎨 **style**: $$Consider a more descriptive name than `u`.$$
"""

SAMPLE_PATCH = """\
@@ -10,6 +10,12 @@ def authenticate(username: str, password: str) -> bool:
     hashed = hash_password(password)
     return db.verify_user(username, hashed)
+
+def get_user(username: str) -> dict:
+    query = f"SELECT * FROM users WHERE username = '{username}'"
+    return db.execute(query)
"""


@pytest.fixture
def sample_reply() -> str:
    """A well-formed model reply with summary, poem and two comments."""
    return SAMPLE_REPLY


@pytest.fixture
def sample_patch() -> str:
    """A single-file patch as returned by the PR files API."""
    return SAMPLE_PATCH


@pytest.fixture
def review_config() -> ReviewConfig:
    """Review config with an exact entry and a wildcard for acme."""
    return ReviewConfig(
        organizations=(
            OrganizationConfig(
                name="acme",
                repositories=(
                    RepositoryConfig(name="*", precision=Precision.MINOR),
                    RepositoryConfig(
                        name="svc",
                        precision=Precision.STRICT,
                        custom_prompt="Check for money rounding bugs.",
                    ),
                ),
            ),
            OrganizationConfig(
                name="initech",
                repositories=(RepositoryConfig(name="tps", precision=Precision.MEDIUM),),
            ),
        )
    )


@pytest.fixture
def pr_info() -> PullRequestInfo:
    """A small, non-draft pull request."""
    return PullRequestInfo(
        owner="acme",
        repo="svc",
        number=42,
        title="Add user authentication",
        body="This PR adds basic user authentication.",
        draft=False,
        stats=ChangeSetStats(files_changed=2, additions=15, deletions=3),
    )


@pytest.fixture
def webhook_payload() -> dict:
    """Minimal GitHub pull_request webhook payload."""
    return {
        "action": "opened",
        "pull_request": {
            "number": 42,
            "draft": False,
            "title": "Add user authentication",
            "body": "This PR adds basic user authentication.",
            "changed_files": 2,
            "additions": 15,
            "deletions": 3,
        },
        "repository": {
            "name": "svc",
            "full_name": "acme/svc",
            "owner": {"login": "acme"},
        },
    }
