"""annuity_submission.core — results, error values, and core value types."""

from annuity_submission.core.errors import (
    CarrierFailure as CarrierFailure,
)
from annuity_submission.core.errors import (
    ComplianceError as ComplianceError,
)
from annuity_submission.core.errors import (
    FieldViolation as FieldViolation,
)
from annuity_submission.core.errors import (
    GatewayError as GatewayError,
)
from annuity_submission.core.errors import (
    GatewayTimeoutError as GatewayTimeoutError,
)
from annuity_submission.core.errors import (
    IllegalTransitionError as IllegalTransitionError,
)
from annuity_submission.core.errors import (
    InconsistentStatusError as InconsistentStatusError,
)
from annuity_submission.core.errors import (
    PersistenceError as PersistenceError,
)
from annuity_submission.core.errors import (
    SubmissionError as SubmissionError,
)
from annuity_submission.core.errors import (
    ValidationError as ValidationError,
)
from annuity_submission.core.errors import (
    ValidationWarning as ValidationWarning,
)
from annuity_submission.core.result import (
    Err as Err,
)
from annuity_submission.core.result import (
    Ok as Ok,
)
from annuity_submission.core.result import (
    Result as Result,
)
from annuity_submission.core.result import (
    partition as partition,
)
from annuity_submission.core.result import (
    unwrap as unwrap,
)
from annuity_submission.core.serialization import (
    canonical_bytes as canonical_bytes,
)
from annuity_submission.core.serialization import (
    content_hash as content_hash,
)
from annuity_submission.core.serialization import (
    text_hash as text_hash,
)
from annuity_submission.core.types import (
    Clock as Clock,
)
from annuity_submission.core.types import (
    IdempotencyKey as IdempotencyKey,
)
from annuity_submission.core.types import (
    NonEmptyStr as NonEmptyStr,
)
from annuity_submission.core.types import (
    UtcDatetime as UtcDatetime,
)
from annuity_submission.core.types import (
    system_clock as system_clock,
)
