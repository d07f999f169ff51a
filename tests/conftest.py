"""Common test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from onboarding_mcp.config import OnboardingSettings
from onboarding_mcp.content.loader import StepContentLoader
from onboarding_mcp.engine.progress import ProgressEngine
from onboarding_mcp.storage.profile_store import ProfileStore

ACCOUNT_SETUP_MD = """\
# Account Setup

Set up your company accounts and sign in to email.

**Step 1 of 3** | **Required**

## What to do

1. Sign in to [the SSO portal](https://sso.example.com)
2. Read the [IT handbook](https://wiki.example.com/it)

## This step is complete when:

- You can sign in to email
- MFA is enabled

## Need help?

Ask in the IT channel.
"""

MEET_BUDDY_MD = """\
# Meet Your Buddy

Schedule a coffee chat with your onboarding buddy.

**Step 2 of 3** | **Optional**

## What to do

Book 30 minutes in their calendar.
"""

MEET_BUDDY_HTML = """\
<html><body data-step-type="social" data-required="true">
<h1>Buddy Coffee (HTML)</h1>
<p>This version must lose to the markdown one.</p>
</body></html>
"""

HARDWARE_HTML = """\
<html>
<head><style>body { color: red; }</style><script>alert("hidden");</script></head>
<body>
<div class="step" data-step-type="equipment" data-required="false">
  <h2>Request Hardware</h2>
  <p>Order your laptop and   monitor.</p>
  <ul>
    <li><a href="https://it.example.com/order">Order form</a></li>
    <li><a href="https://it.example.com/faq">Hardware FAQ</a></li>
  </ul>
  <div class="note completion-criteria">
    Your <b>request id</b> is recorded.
  </div>
</div>
</body>
</html>
"""


def write_steps(steps_dir: Path, documents: dict[str, str]) -> Path:
    steps_dir.mkdir(parents=True, exist_ok=True)
    for filename, content in documents.items():
        (steps_dir / filename).write_text(content, encoding="utf-8")
    return steps_dir


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    return tmp_path / "config"


@pytest.fixture
def steps_dir(config_dir: Path) -> Path:
    """Three steps: markdown 1, markdown 2 (shadowing an HTML 2), HTML 3."""
    return write_steps(
        config_dir / "steps",
        {
            "step-1-account-setup.md": ACCOUNT_SETUP_MD,
            "step-2-meet-buddy.md": MEET_BUDDY_MD,
            "step-2-meet-buddy.html": MEET_BUDDY_HTML,
            "step-3-hardware.html": HARDWARE_HTML,
        },
    )


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "data" / "employees"


@pytest.fixture
def settings(config_dir: Path, steps_dir: Path, data_dir: Path) -> OnboardingSettings:
    return OnboardingSettings(config_path=config_dir, data_path=data_dir)


@pytest.fixture
def loader(steps_dir: Path) -> StepContentLoader:
    return StepContentLoader(steps_dir)


@pytest.fixture
def store(data_dir: Path) -> ProfileStore:
    return ProfileStore(data_dir)


@pytest.fixture
def engine(store: ProfileStore, loader: StepContentLoader) -> ProgressEngine:
    return ProgressEngine(store, loader)
