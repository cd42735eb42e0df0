"""Result models produced by a migration run."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.outcome import OutcomeStatus, RequestOutcome
from ..models.project import Project


class MigrationResult(BaseModel):
    """Projects bucketed by outcome, plus one error line per failure."""

    succeeded: List[Project] = Field(default_factory=list)
    skipped: List[Project] = Field(default_factory=list)
    failed: List[Project] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)

    def record(self, project: Project, outcome: RequestOutcome, context: str) -> None:
        """File a project under the bucket its outcome selects.

        Args:
            project: Project the request was made for
            outcome: Classified request outcome
            context: Leading text of the error line, used on failure only
        """
        if outcome.status == OutcomeStatus.ALREADY_EXISTS:
            self.skipped.append(project)
        elif outcome.failed:
            self.record_failure(project, f'{context}\n  {outcome.describe()}')
        else:
            self.succeeded.append(project)

    def record_failure(self, project: Project, error: str) -> None:
        self.failed.append(project)
        self.errors.append(error)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.skipped) + len(self.failed)


class MigrationSummary(BaseModel):
    """Results of a full migration run."""

    projects: MigrationResult = Field(..., description='Repository import results')
    keys: Optional[MigrationResult] = Field(
        default=None, description='Deploy key results, when keys were migrated'
    )

    started_at: datetime = Field(..., description='Migration start time')
    completed_at: Optional[datetime] = Field(
        default=None, description='Migration completion time'
    )

    @property
    def errors(self) -> List[str]:
        errors = list(self.projects.errors)
        if self.keys is not None:
            errors.extend(self.keys.errors)
        return errors
