"""annuity_submission.lifecycle — transitions, the state machine, reconciliation, webhooks."""

from annuity_submission.lifecycle.machine import AdvanceOutcome as AdvanceOutcome
from annuity_submission.lifecycle.machine import (
    ApplicationStateMachine as ApplicationStateMachine,
)
from annuity_submission.lifecycle.machine import SubmissionOutcome as SubmissionOutcome
from annuity_submission.lifecycle.machine import merge_warnings as merge_warnings
from annuity_submission.lifecycle.reconciler import StatusReconciler as StatusReconciler
from annuity_submission.lifecycle.transitions import TRANSITIONS as TRANSITIONS
from annuity_submission.lifecycle.transitions import ReportDisposition as ReportDisposition
from annuity_submission.lifecycle.transitions import check_transition as check_transition
from annuity_submission.lifecycle.transitions import classify_report as classify_report
from annuity_submission.lifecycle.transitions import reachable as reachable
from annuity_submission.lifecycle.webhooks import WebhookEvent as WebhookEvent
from annuity_submission.lifecycle.webhooks import WebhookEventType as WebhookEventType
from annuity_submission.lifecycle.webhooks import event_snapshot as event_snapshot
from annuity_submission.lifecycle.webhooks import parse_webhook as parse_webhook
from annuity_submission.lifecycle.webhooks import sign_payload as sign_payload
from annuity_submission.lifecycle.webhooks import verify_signature as verify_signature
