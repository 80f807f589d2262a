"""annuity_submission.gateway — the carrier gateway seam and its two adapters."""

from annuity_submission.gateway.acord import AcordSummary as AcordSummary
from annuity_submission.gateway.acord import parse_acord_xml as parse_acord_xml
from annuity_submission.gateway.acord import render_acord_xml as render_acord_xml
from annuity_submission.gateway.factory import build_gateway as build_gateway
from annuity_submission.gateway.live import LiveGateway as LiveGateway
from annuity_submission.gateway.protocol import CarrierGateway as CarrierGateway
from annuity_submission.gateway.simulation import SimulationGateway as SimulationGateway
from annuity_submission.gateway.types import SIMULATION_ID_PREFIX as SIMULATION_ID_PREFIX
from annuity_submission.gateway.types import CreateApplicationResult as CreateApplicationResult
from annuity_submission.gateway.types import ExchangeAcknowledgement as ExchangeAcknowledgement
from annuity_submission.gateway.types import ExchangeRequest as ExchangeRequest
from annuity_submission.gateway.types import ExistingPolicy as ExistingPolicy
from annuity_submission.gateway.types import GatewayHealth as GatewayHealth
from annuity_submission.gateway.types import SignatureSession as SignatureSession
from annuity_submission.gateway.types import Signer as Signer
from annuity_submission.gateway.types import SignerRole as SignerRole
from annuity_submission.gateway.types import SigningUrl as SigningUrl
from annuity_submission.gateway.types import TransferAuthorization as TransferAuthorization
