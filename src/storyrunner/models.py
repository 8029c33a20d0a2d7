"""Story, result and run dataclasses shared across the execution engine."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


@dataclass
class Step:
    """One browser action within a story.

    `selector` is the explicit target and always wins over `element`.
    `element` doubles as the URL holder for navigation steps.
    """

    action: str
    selector: str | None = None
    element: str | None = None
    value: str | None = None
    description: str | None = None

    @property
    def target(self) -> str | None:
        return self.selector or self.element

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Step":
        return cls(
            action=data["action"],
            selector=data.get("selector") or None,
            element=data.get("element") or None,
            value=_opt_str(data.get("value")),
            description=data.get("description"),
        )


@dataclass
class Verification:
    type: str  # url, element, content
    expected: str = ""
    target: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Verification":
        return cls(
            type=data["type"],
            expected=str(data.get("expected", "")),
            target=data.get("target") or None,
        )


@dataclass
class Outcome:
    verifications: list[Verification] = field(default_factory=list)
    description: str | None = None


@dataclass
class Story:
    """Read-only test case: ordered steps plus outcome verifications."""

    id: str
    steps: list[Step]
    outcome: Outcome = field(default_factory=Outcome)
    required_role: str | None = None
    title: str = ""
    name: str = ""
    journey_name: str = ""

    @property
    def label(self) -> str:
        return self.title or self.name or self.id

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Story":
        outcome = data.get("outcome") or {}
        journey = data.get("journey") or {}
        return cls(
            id=str(data["id"]),
            steps=[Step.from_dict(s) for s in data["steps"]],
            outcome=Outcome(
                verifications=[
                    Verification.from_dict(v)
                    for v in outcome.get("verifications") or []
                ],
                description=outcome.get("description"),
            ),
            required_role=data.get("required_role") or None,
            title=data.get("title", ""),
            name=data.get("name", ""),
            journey_name=journey.get("name") or data.get("journey_name", ""),
        )


class AuthType(str, Enum):
    NONE = "none"
    BASIC = "basic"
    FORM = "form"
    OAUTH = "oauth"


@dataclass
class AuthConfig:
    """Login settings of an environment. Only `form` drives any behavior."""

    type: AuthType = AuthType.NONE
    login_url: str | None = None
    username_selector: str | None = None
    password_selector: str | None = None
    submit_selector: str | None = None
    success_indicator: str | None = None

    @property
    def is_form(self) -> bool:
        return self.type is AuthType.FORM

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "AuthConfig | None":
        if not data:
            return None
        try:
            auth_type = AuthType(data.get("type", "none"))
        except ValueError:
            auth_type = AuthType.NONE
        return cls(
            type=auth_type,
            login_url=data.get("loginUrl") or data.get("login_url"),
            username_selector=data.get("usernameSelector") or data.get("username_selector"),
            password_selector=data.get("passwordSelector") or data.get("password_selector"),
            submit_selector=data.get("submitSelector") or data.get("submit_selector"),
            success_indicator=data.get("successIndicator") or data.get("success_indicator"),
        )


@dataclass
class Credentials:
    username: str
    password: str = field(repr=False)


@dataclass
class Environment:
    base_url: str
    auth_config: AuthConfig | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Environment":
        return cls(
            base_url=data["base_url"],
            auth_config=AuthConfig.from_dict(data.get("auth_config")),
        )


@dataclass
class ExecutionOptions:
    retry_count: int = 0  # extra attempts per step
    screenshot_on_failure: bool = False
    credentials: Credentials | None = None
    auth_config: AuthConfig | None = None


@dataclass
class StepResult:
    step: int
    action: str
    passed: bool
    duration_ms: int
    error: str | None = None


@dataclass
class HealProposal:
    """Reserved for suggested story repairs. Never produced by the runner."""

    step: int
    original_selector: str | None = None
    proposed_selector: str | None = None
    reason: str = ""


@dataclass
class ExecutionResult:
    passed: bool
    duration_ms: int
    steps: list[StepResult] = field(default_factory=list)
    error: str | None = None
    screenshot_url: str | None = None
    console_errors: list[str] = field(default_factory=list)
    retries: int = 0
    heal_proposal: HealProposal | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class RunStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class Run:
    """Externally stored batch record, mutated as stories finish."""

    id: str
    status: RunStatus = RunStatus.PENDING
    stories_total: int = 0
    stories_passed: int = 0
    stories_failed: int = 0
    stories_skipped: int = 0
    current_story_id: str | None = None
    current_story_name: str | None = None
    started_at: str | None = None
    completed_at: str | None = None
    duration_ms: int | None = None


@dataclass
class ProgressUpdate:
    total: int
    completed: int
    passed: int
    failed: int
    skipped: int
    current: str | None = None


@dataclass
class ResultRecord:
    """Per-story row handed to the persistence layer."""

    run_id: str
    story_id: str
    journey_name: str
    story_name: str
    passed: bool
    duration_ms: int = 0
    skipped: bool = False
    steps: list[StepResult] = field(default_factory=list)
    error: str | None = None
    screenshot_url: str | None = None
    console_errors: list[str] = field(default_factory=list)
    heal_proposal: HealProposal | None = None
    retries: int = 0

    @classmethod
    def from_execution(
        cls, run_id: str, story: Story, result: ExecutionResult
    ) -> "ResultRecord":
        return cls(
            run_id=run_id,
            story_id=story.id,
            journey_name=story.journey_name,
            story_name=story.name,
            passed=result.passed,
            duration_ms=result.duration_ms,
            steps=list(result.steps),
            error=result.error,
            screenshot_url=result.screenshot_url,
            console_errors=list(result.console_errors),
            heal_proposal=result.heal_proposal,
            retries=result.retries,
        )


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)
