"""annuity_submission.workflow -- Temporal.io durable application submission."""

from annuity_submission.workflow.types import (
    ApplicationOutcome as ApplicationOutcome,
)
from annuity_submission.workflow.types import (
    ApplicationResult as ApplicationResult,
)
from annuity_submission.workflow.types import (
    ApplySnapshotInput as ApplySnapshotInput,
)
from annuity_submission.workflow.types import (
    CancelInput as CancelInput,
)
from annuity_submission.workflow.types import (
    StatusOutput as StatusOutput,
)
from annuity_submission.workflow.types import (
    SubmissionRequest as SubmissionRequest,
)
from annuity_submission.workflow.types import (
    SubmitInput as SubmitInput,
)
from annuity_submission.workflow.types import (
    SubmitOutput as SubmitOutput,
)
from annuity_submission.workflow.types import (
    ValidationOutput as ValidationOutput,
)
