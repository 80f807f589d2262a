"""ACORD TXLife 103 (New Business Submission) documents.

render_acord_xml builds the document for an application the carrier has
accepted; parse_acord_xml reads back the fields used for audit and DTCC
reconciliation. Government ids are masked to the last four digits.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import final

from annuity_submission.core.result import Err, Ok
from annuity_submission.model.application import Application
from annuity_submission.model.parties import (
    Address,
    Beneficiary,
    CharityBeneficiary,
    EstateBeneficiary,
    Gender,
    IndividualBeneficiary,
    IndividualOwner,
    IraOwner,
    Owner,
    Qualified401kOwner,
    Tranche,
    TrustBeneficiary,
)

ACORD_NS = "http://ACORD.org/Standards/Life/2"
ACORD_VERSION = "2.43.00"
TX_NEW_BUSINESS = "103"
_XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'

# OLI_REL role codes
_REL_OWNER = ("8", "Owner")
_REL_PRIMARY_BENEFICIARY = ("34", "Primary Beneficiary")
_REL_ANNUITANT = ("35", "Annuitant")
_REL_CONTINGENT_BENEFICIARY = ("36", "Contingent Beneficiary")
_REL_WRITING_AGENT = ("37", "Primary Writing Agent")
_REL_JOINT_OWNER = ("184", "Joint Owner")

_GENDER_TC = {Gender.MALE: ("1", "Male"), Gender.FEMALE: ("2", "Female")}

ET.register_namespace("", ACORD_NS)


def _q(tag: str) -> str:
    return f"{{{ACORD_NS}}}{tag}"


def _sub(parent: ET.Element, tag: str, text: object = None, **attrib: str) -> ET.Element:
    el = ET.SubElement(parent, _q(tag), attrib)
    if text is not None:
        el.text = str(text)
    return el


def mask_govt_id(raw: str | None) -> str | None:
    digits = "".join(c for c in raw or "" if c.isdigit())
    if len(digits) < 4:
        return None
    return f"*****{digits[-4:]}"


def _address(parent: ET.Element, address: Address | None) -> None:
    if address is None:
        return
    el = _sub(parent, "Address")
    _sub(el, "Line1", address.street1)
    if address.street2:
        _sub(el, "Line2", address.street2)
    _sub(el, "City", address.city)
    _sub(el, "AddressStateTC", address.state.upper())
    _sub(el, "Zip", address.zip_code)


def _person_party(
    olife: ET.Element, party_id: str, first: str, last: str,
    *, birth: date | None = None, gender: Gender | None = None,
    govt_id: str | None = None, address: Address | None = None,
) -> None:
    party = _sub(olife, "Party", id=party_id)
    _sub(party, "PartyTypeCode", "Person", tc="1")
    _sub(party, "FullName", f"{first} {last}".strip())
    masked = mask_govt_id(govt_id)
    if masked is not None:
        _sub(party, "GovtID", masked)
    person = _sub(party, "Person")
    _sub(person, "FirstName", first)
    _sub(person, "LastName", last)
    if gender is not None:
        tc, label = _GENDER_TC[gender]
        _sub(person, "Gender", label, tc=tc)
    if birth is not None:
        _sub(person, "BirthDate", birth.isoformat())
    _address(party, address)


def _org_party(
    olife: ET.Element, party_id: str, name: str,
    *, tax_id: str | None = None, address: Address | None = None,
) -> None:
    party = _sub(olife, "Party", id=party_id)
    _sub(party, "PartyTypeCode", "Organization", tc="2")
    _sub(party, "FullName", name)
    masked = mask_govt_id(tax_id)
    if masked is not None:
        _sub(party, "GovtID", masked)
    org = _sub(party, "Organization")
    _sub(org, "DBA", name)
    _address(party, address)


def _owner_party(olife: ET.Element, party_id: str, owner: Owner) -> None:
    match owner:
        case IndividualOwner():
            _person_party(
                olife, party_id, owner.first_name, owner.last_name,
                birth=owner.date_of_birth, govt_id=owner.ssn, address=owner.address,
            )
        case _:
            _org_party(
                olife, party_id, owner.entity_name, tax_id=owner.ein, address=owner.address,
            )


def _beneficiary_party(olife: ET.Element, party_id: str, b: Beneficiary) -> None:
    match b:
        case IndividualBeneficiary():
            _person_party(
                olife, party_id, b.first_name, b.last_name,
                birth=b.date_of_birth, govt_id=b.ssn, address=b.address,
            )
        case TrustBeneficiary() | CharityBeneficiary():
            _org_party(olife, party_id, b.entity_name, tax_id=b.ein, address=b.address)
        case EstateBeneficiary():
            _org_party(olife, party_id, f"Estate of {b.estate_of or 'Owner'}")


def _relation(
    olife: ET.Element, holding_id: str, party_id: str, role: tuple[str, str],
    *, percent: Decimal | None = None,
) -> None:
    rel = _sub(
        olife, "Relation",
        OriginatingObjectID=holding_id, RelatedObjectID=party_id,
        id=f"Relation_{party_id}",
    )
    _sub(rel, "OriginatingObjectType", "Holding", tc="4")
    _sub(rel, "RelatedObjectType", "Party", tc="6")
    _sub(rel, "RelationRoleCode", role[1], tc=role[0])
    if percent is not None:
        _sub(rel, "InterestPercent", percent)


def render_acord_xml(
    app: Application,
    *,
    application_id: str,
    confirmation_number: str,
    submitted_on: date,
    dtcc_reference: str | None = None,
) -> str:
    """Deterministic: the same inputs always render the same document."""
    root = ET.Element(_q("TXLife"), {"Version": ACORD_VERSION})
    request = _sub(root, "TXLifeRequest", PrimaryObjectID="Holding_1")
    _sub(request, "TransRefGUID", app.application_ref)
    _sub(request, "TransType", "New Business Submission", tc=TX_NEW_BUSINESS)
    _sub(request, "TransExeDate", submitted_on.isoformat())

    olife = _sub(request, "OLifE")
    holding = _sub(olife, "Holding", id="Holding_1")
    _sub(holding, "HoldingTypeCode", "Policy", tc="2")
    policy = _sub(holding, "Policy")
    _sub(policy, "PolNumber", application_id)
    _sub(policy, "CarrierCode", app.product.carrier_id)
    _sub(policy, "CarrierName", app.product.carrier_name)
    _sub(policy, "ProductCode", app.product.product_id)
    _sub(policy, "PlanName", app.product.product_name)
    _sub(policy, "ProductType", app.product.annuity_type.value)
    info = _sub(policy, "ApplicationInfo")
    _sub(info, "TrackingID", confirmation_number)
    _sub(info, "SubmissionDate", submitted_on.isoformat())
    _sub(info, "ReplacementInd", "1" if app.premium.is_1035_exchange else "0")
    annuity = _sub(policy, "Annuity")
    _sub(annuity, "InitPaymentAmt", app.premium.initial_premium)
    _sub(annuity, "SourceOfFunds", app.premium.source_of_funds.value)
    _sub(annuity, "PaymentMethod", app.premium.payment_method.value)
    match app.owner:
        case IraOwner(qualified_plan=plan) | Qualified401kOwner(qualified_plan=plan) if (
            plan is not None and plan.plan_type is not None
        ):
            _sub(annuity, "QualPlanType", plan.plan_type.value)
        case _:
            _sub(annuity, "QualPlanType", "Non-Qualified")
    if app.premium.exchange_1035 is not None:
        ex = app.premium.exchange_1035
        exchange = _sub(annuity, "Exchange1035")
        _sub(exchange, "ExistingCarrier", ex.existing_carrier)
        _sub(exchange, "ExistingPolNumber", ex.policy_number)
        if ex.account_value is not None:
            _sub(exchange, "AccountValue", ex.account_value)
        if ex.surrender_value is not None:
            _sub(exchange, "SurrenderValue", ex.surrender_value)

    a = app.annuitant
    _person_party(
        olife, "Party_Annuitant", a.first_name, a.last_name,
        birth=a.date_of_birth, gender=a.gender, govt_id=a.ssn, address=a.address,
    )
    _owner_party(olife, "Party_Owner", app.owner)
    if app.joint_owner is not None:
        _owner_party(olife, "Party_JointOwner", app.joint_owner)
    for i, b in enumerate(app.beneficiaries, start=1):
        _beneficiary_party(olife, f"Party_Beneficiary_{i}", b)
    agent = _sub(olife, "Party", id="Party_Agent")
    _sub(agent, "FullName", app.agent.name)
    producer = _sub(agent, "Producer")
    _sub(producer, "CarrierAppointmentID", app.agent.agent_id)
    if app.agent.npn:
        _sub(producer, "NIPRNumber", app.agent.npn)

    _relation(olife, "Holding_1", "Party_Annuitant", _REL_ANNUITANT)
    _relation(olife, "Holding_1", "Party_Owner", _REL_OWNER)
    if app.joint_owner is not None:
        _relation(olife, "Holding_1", "Party_JointOwner", _REL_JOINT_OWNER)
    for i, b in enumerate(app.beneficiaries, start=1):
        role = (
            _REL_PRIMARY_BENEFICIARY if b.tranche == Tranche.PRIMARY
            else _REL_CONTINGENT_BENEFICIARY
        )
        _relation(olife, "Holding_1", f"Party_Beneficiary_{i}", role, percent=b.percentage)
    _relation(olife, "Holding_1", "Party_Agent", _REL_WRITING_AGENT)

    if dtcc_reference is not None:
        ext = _sub(olife, "OLifEExtension", VendorCode="DTCC")
        _sub(ext, "DTCCReferenceNumber", dtcc_reference)

    ET.indent(root)
    return _XML_DECLARATION + ET.tostring(root, encoding="unicode")


@final
@dataclass(frozen=True, slots=True)
class AcordSummary:
    """Fields read back from a TXLife document."""

    transaction_type: str
    application_id: str
    tracking_id: str | None
    carrier_code: str | None
    product_code: str | None
    initial_premium: Decimal | None
    party_count: int
    dtcc_reference: str | None


def _text(root: ET.Element, path: str) -> str | None:
    el = root.find(path, {"a": ACORD_NS})
    if el is None or el.text is None or not el.text.strip():
        return None
    return el.text.strip()


def parse_acord_xml(xml: str) -> Ok[AcordSummary] | Err[str]:
    try:
        root = ET.fromstring(xml)
    except ET.ParseError as e:
        return Err(f"ACORD document is not well-formed XML: {e}")
    if root.tag != _q("TXLife"):
        return Err(f"ACORD root element must be TXLife, got {root.tag}")
    trans = root.find("a:TXLifeRequest/a:TransType", {"a": ACORD_NS})
    if trans is None:
        return Err("ACORD document has no TransType")
    tc = trans.get("tc", "")
    pol_number = _text(root, "a:TXLifeRequest/a:OLifE/a:Holding/a:Policy/a:PolNumber")
    if pol_number is None:
        return Err("ACORD document has no PolNumber")
    premium_raw = _text(
        root, "a:TXLifeRequest/a:OLifE/a:Holding/a:Policy/a:Annuity/a:InitPaymentAmt",
    )
    premium: Decimal | None = None
    if premium_raw is not None:
        try:
            premium = Decimal(premium_raw)
        except InvalidOperation:
            return Err(f"ACORD InitPaymentAmt is not a number: {premium_raw!r}")
    return Ok(AcordSummary(
        transaction_type=tc,
        application_id=pol_number,
        tracking_id=_text(
            root, "a:TXLifeRequest/a:OLifE/a:Holding/a:Policy/a:ApplicationInfo/a:TrackingID",
        ),
        carrier_code=_text(root, "a:TXLifeRequest/a:OLifE/a:Holding/a:Policy/a:CarrierCode"),
        product_code=_text(root, "a:TXLifeRequest/a:OLifE/a:Holding/a:Policy/a:ProductCode"),
        initial_premium=premium,
        party_count=len(root.findall("a:TXLifeRequest/a:OLifE/a:Party", {"a": ACORD_NS})),
        dtcc_reference=_text(
            root, "a:TXLifeRequest/a:OLifE/a:OLifEExtension/a:DTCCReferenceNumber",
        ),
    ))
