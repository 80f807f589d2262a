"""Domain -> gateway wire shape (camelCase JSON objects).

Absent optional fields are omitted, never sent as null or "". Money is
sent as a decimal string so no amount passes through binary floating point.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from annuity_submission.gateway.types import ExchangeRequest, Signer
from annuity_submission.model.application import Application
from annuity_submission.model.funding import Premium
from annuity_submission.model.parties import (
    Address,
    Annuitant,
    Beneficiary,
    BusinessOwner,
    CharityBeneficiary,
    EstateBeneficiary,
    IndividualBeneficiary,
    IndividualOwner,
    IraOwner,
    Owner,
    Qualified401kOwner,
    QualifiedPlan,
    TrustBeneficiary,
    TrustOwner,
)
from annuity_submission.model.suitability import SuitabilityRecord


def _wire(value: object) -> object:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return _compact(value)
    if isinstance(value, (list, tuple)):
        return [_wire(v) for v in value]
    return value


def _compact(fields: dict[str, Any]) -> dict[str, Any]:
    """Drop None entries and convert leaves to wire values."""
    return {k: _wire(v) for k, v in fields.items() if v is not None}


def address_payload(address: Address | None) -> dict[str, Any] | None:
    if address is None:
        return None
    return _compact({
        "street1": address.street1,
        "street2": address.street2,
        "city": address.city,
        "state": address.state.upper(),
        "zipCode": address.zip_code,
        "country": address.country,
    })


def annuitant_payload(a: Annuitant) -> dict[str, Any]:
    withholding = None
    if a.tax_withholding is not None:
        withholding = {"federal": a.tax_withholding.federal, "state": a.tax_withholding.state}
    return _compact({
        "firstName": a.first_name,
        "middleName": a.middle_name,
        "lastName": a.last_name,
        "suffix": a.suffix,
        "ssn": a.ssn,
        "dateOfBirth": a.date_of_birth,
        "gender": a.gender,
        "citizenshipStatus": a.citizenship,
        "email": a.email,
        "phone": a.phone,
        "phoneType": a.phone_type,
        "address": address_payload(a.address),
        "occupation": a.occupation,
        "employer": a.employer,
        "employmentStatus": a.employment_status,
        "annualIncome": a.annual_income,
        "netWorth": a.net_worth,
        "liquidNetWorth": a.liquid_net_worth,
        "taxWithholding": withholding,
    })


def _plan_payload(plan: QualifiedPlan | None) -> dict[str, Any] | None:
    if plan is None:
        return None
    return {
        "planType": plan.plan_type,
        "custodian": plan.custodian,
        "accountNumber": plan.account_number,
    }


def owner_payload(owner: Owner) -> dict[str, Any]:
    fields: dict[str, Any] = {"type": owner.owner_type, "address": address_payload(owner.address)}
    match owner:
        case IndividualOwner():
            fields |= {
                "firstName": owner.first_name,
                "middleName": owner.middle_name,
                "lastName": owner.last_name,
                "ssn": owner.ssn,
                "dateOfBirth": owner.date_of_birth,
                "email": owner.email,
                "phone": owner.phone,
            }
        case TrustOwner():
            fields |= {
                "businessName": owner.entity_name,
                "ein": owner.ein,
                "trustDate": owner.trust_date,
                "signerName": owner.signer_name,
                "email": owner.email,
            }
        case BusinessOwner():
            fields |= {
                "businessName": owner.entity_name,
                "ein": owner.ein,
                "signerName": owner.signer_name,
                "email": owner.email,
            }
        case IraOwner() | Qualified401kOwner():
            fields |= {
                "businessName": owner.entity_name,
                "ein": owner.ein,
                "qualifiedPlan": _plan_payload(owner.qualified_plan),
                "signerName": owner.signer_name,
                "email": owner.email,
            }
    return _compact(fields)


def beneficiary_payload(b: Beneficiary) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "type": b.tranche,
        "designation": b.designation,
        "percentage": b.percentage,
    }
    match b:
        case IndividualBeneficiary():
            fields |= {
                "firstName": b.first_name,
                "middleName": b.middle_name,
                "lastName": b.last_name,
                "relationship": b.relationship,
                "dateOfBirth": b.date_of_birth,
                "ssn": b.ssn,
                "address": address_payload(b.address),
            }
        case TrustBeneficiary():
            fields |= {
                "entityName": b.entity_name,
                "ein": b.ein,
                "trustDate": b.trust_date,
                "address": address_payload(b.address),
            }
        case CharityBeneficiary():
            fields |= {
                "entityName": b.entity_name,
                "ein": b.ein,
                "address": address_payload(b.address),
            }
        case EstateBeneficiary():
            fields |= {"entityName": b.estate_of}
    return _compact(fields)


def premium_payload(p: Premium) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "initialPremium": p.initial_premium,
        "sourceOfFunds": p.source_of_funds,
        "sourceDetails": p.source_details,
        "paymentMethod": p.payment_method,
    }
    if p.additional_premium is not None:
        fields["additionalPremiums"] = {
            "amount": p.additional_premium.amount,
            "frequency": p.additional_premium.frequency,
        }
    if p.ach is not None:
        fields |= {
            "bankName": p.ach.bank_name,
            "accountType": p.ach.account_type,
            "routingNumber": p.ach.routing_number,
            "accountNumber": p.ach.account_number,
        }
    if p.exchange_1035 is not None:
        ex = p.exchange_1035
        fields["exchange1035"] = {
            "existingCarrier": ex.existing_carrier,
            "policyNumber": ex.policy_number,
            "accountValue": ex.account_value,
            "surrenderValue": ex.surrender_value,
            "surrenderCharges": ex.surrender_charges,
        }
    if p.rollover is not None:
        fields["rollover"] = {
            "fromInstitution": p.rollover.from_institution,
            "accountNumber": p.rollover.account_number,
            "accountValue": p.rollover.account_value,
            "rolloverType": p.rollover.rollover_type,
        }
    return _compact(fields)


def suitability_payload(s: SuitabilityRecord) -> dict[str, Any]:
    return _compact({
        "investmentObjective": s.investment_objective,
        "investmentTimeHorizon": s.time_horizon,
        "riskTolerance": s.risk_tolerance,
        "liquidityNeeds": s.liquidity_needs,
        "emergencyFunds": s.emergency_funds,
        "otherInvestments": s.other_investments,
        "existingAnnuities": [
            {
                "carrier": e.carrier,
                "productType": e.product_type,
                "value": e.value,
                "yearPurchased": e.year_purchased,
            }
            for e in s.existing_annuities
        ] or None,
        "purposeOfAnnuity": s.purpose,
        "understandSurrenderCharges": s.understands_surrender_charges,
        "understandLiquidityRestrictions": s.understands_liquidity_restrictions,
    })


def application_payload(app: Application, *, idempotency_key: str) -> dict[str, Any]:
    """Body of POST /applications."""
    options = None
    if app.options is not None:
        options = {
            "deathBenefit": app.options.death_benefit,
            "livingBenefit": app.options.living_benefit,
            "nursingHomeWaiver": app.options.nursing_home_waiver,
            "terminalIllnessWaiver": app.options.terminal_illness_waiver,
        }
    return _compact({
        "carrierId": app.product.carrier_id,
        "carrierName": app.product.carrier_name,
        "productId": app.product.product_id,
        "productName": app.product.product_name,
        "annuityType": app.product.annuity_type,
        "annuitant": annuitant_payload(app.annuitant),
        "owner": owner_payload(app.owner),
        "jointOwner": owner_payload(app.joint_owner) if app.joint_owner is not None else None,
        "beneficiaries": [beneficiary_payload(b) for b in app.beneficiaries],
        "premium": premium_payload(app.premium),
        "suitability": suitability_payload(app.suitability),
        "options": options,
        "agentId": app.agent.agent_id,
        "agentEmail": app.agent.email,
        "agentLicenseNumber": app.agent.license_number,
        "agentNPN": app.agent.npn,
        "quoteId": app.quote_id,
        "externalQuoteId": app.external_quote_id,
        "replacementForm": app.compliance.replacement_form,
        "stateSpecificForms": list(app.compliance.state_specific_forms) or None,
        "electronicConsent": app.compliance.electronic_consent,
        "externalReference": app.application_ref,
        "idempotencyKey": idempotency_key,
    })


def signature_request_payload(
    application_id: str, signers: tuple[Signer, ...], return_url: str | None = None,
) -> dict[str, Any]:
    return _compact({
        "applicationId": application_id,
        "signers": [{"role": s.role, "name": s.name, "email": s.email} for s in signers],
        "returnUrl": return_url,
    })


def exchange_payload(request: ExchangeRequest) -> dict[str, Any]:
    policy = request.existing_policy
    auth = request.authorization
    return _compact({
        "applicationId": request.application_id,
        "existingPolicyInfo": {
            "carrier": policy.carrier,
            "policyNumber": policy.policy_number,
            "policyType": policy.policy_type,
            "accountValue": policy.account_value,
            "surrenderValue": policy.surrender_value,
            "costBasis": policy.cost_basis,
        },
        "transferAuthorization": {
            "signed": auth.signed,
            "signedDate": auth.signed_date,
            "documentUrl": auth.document_url,
        },
    })
