"""Registry of the record kinds a resident can pay for.

Each kind declares which statuses are payable, what the record becomes once
paid, which fee mode prices it and which review transitions staff may apply.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from app.core.exceptions import NotFoundError
from app.models.bill import Bill, BillStatus
from app.models.business_license import BusinessLicense, BusinessLicenseStatus
from app.models.domain_record import PaymentStatus
from app.models.payment_attempt import EntityKind
from app.models.permit import Permit, PermitStatus
from app.models.service_application import ServiceApplication, ServiceApplicationStatus
from app.models.tax_submission import TaxSubmission, TaxSubmissionStatus
from app.services.fee_models.factory import FeeMode


@dataclass(frozen=True)
class PayableEntity:
    kind: EntityKind
    label: str
    model: Any
    payable_statuses: frozenset[str]
    paid_status: str
    fee_mode: FeeMode
    initial_status: str
    review_transitions: dict[str, frozenset[str]] = field(default_factory=dict)

    def is_payable(self, record: Any) -> bool:
        return record.status in self.payable_statuses

    def can_transition(self, current: str, target: str) -> bool:
        return target in self.review_transitions.get(current, frozenset())

    def apply_payment(
        self,
        record: Any,
        *,
        service_fee_cents: int,
        total_amount_cents: int,
        payment_reference: str | None,
        paid_at: datetime,
    ) -> None:
        """Advance a record to paid. The caller commits."""
        record.status = self.paid_status
        record.payment_status = PaymentStatus.PAID.value
        record.service_fee_cents = service_fee_cents
        record.total_amount_cents = total_amount_cents
        record.payment_reference = payment_reference
        record.paid_at = paid_at
        if self.kind == EntityKind.BUSINESS_LICENSE:
            record.issued_at = paid_at


_REGISTRY: dict[EntityKind, PayableEntity] = {
    EntityKind.PERMIT: PayableEntity(
        kind=EntityKind.PERMIT,
        label="Permit",
        model=Permit,
        payable_statuses=frozenset({PermitStatus.APPROVED.value}),
        paid_status=PermitStatus.ISSUED.value,
        fee_mode=FeeMode.ADDITIVE,
        initial_status=PermitStatus.SUBMITTED.value,
        review_transitions={
            PermitStatus.SUBMITTED.value: frozenset(
                {
                    PermitStatus.UNDER_REVIEW.value,
                    PermitStatus.APPROVED.value,
                    PermitStatus.DENIED.value,
                }
            ),
            PermitStatus.UNDER_REVIEW.value: frozenset(
                {
                    PermitStatus.APPROVED.value,
                    PermitStatus.DENIED.value,
                    PermitStatus.INFORMATION_REQUESTED.value,
                }
            ),
            PermitStatus.INFORMATION_REQUESTED.value: frozenset({PermitStatus.UNDER_REVIEW.value}),
            PermitStatus.APPROVED.value: frozenset({PermitStatus.WITHDRAWN.value}),
        },
    ),
    EntityKind.BUSINESS_LICENSE: PayableEntity(
        kind=EntityKind.BUSINESS_LICENSE,
        label="Business license",
        model=BusinessLicense,
        payable_statuses=frozenset({BusinessLicenseStatus.APPROVED.value}),
        paid_status=BusinessLicenseStatus.ISSUED.value,
        fee_mode=FeeMode.GROSSED_UP,
        initial_status=BusinessLicenseStatus.SUBMITTED.value,
        review_transitions={
            BusinessLicenseStatus.SUBMITTED.value: frozenset(
                {
                    BusinessLicenseStatus.UNDER_REVIEW.value,
                    BusinessLicenseStatus.APPROVED.value,
                    BusinessLicenseStatus.REJECTED.value,
                }
            ),
            BusinessLicenseStatus.UNDER_REVIEW.value: frozenset(
                {
                    BusinessLicenseStatus.APPROVED.value,
                    BusinessLicenseStatus.REJECTED.value,
                    BusinessLicenseStatus.INFORMATION_REQUESTED.value,
                }
            ),
            BusinessLicenseStatus.INFORMATION_REQUESTED.value: frozenset(
                {BusinessLicenseStatus.UNDER_REVIEW.value}
            ),
        },
    ),
    EntityKind.TAX_SUBMISSION: PayableEntity(
        kind=EntityKind.TAX_SUBMISSION,
        label="Tax submission",
        model=TaxSubmission,
        payable_statuses=frozenset({TaxSubmissionStatus.DRAFT.value}),
        paid_status=TaxSubmissionStatus.ISSUED.value,
        fee_mode=FeeMode.ADDITIVE,
        initial_status=TaxSubmissionStatus.DRAFT.value,
        review_transitions={
            TaxSubmissionStatus.DRAFT.value: frozenset({TaxSubmissionStatus.REJECTED.value}),
        },
    ),
    EntityKind.SERVICE_APPLICATION: PayableEntity(
        kind=EntityKind.SERVICE_APPLICATION,
        label="Service application",
        model=ServiceApplication,
        payable_statuses=frozenset({ServiceApplicationStatus.APPROVED.value}),
        paid_status=ServiceApplicationStatus.ISSUED.value,
        fee_mode=FeeMode.ADDITIVE,
        initial_status=ServiceApplicationStatus.SUBMITTED.value,
        review_transitions={
            ServiceApplicationStatus.DRAFT.value: frozenset(
                {ServiceApplicationStatus.SUBMITTED.value}
            ),
            ServiceApplicationStatus.SUBMITTED.value: frozenset(
                {
                    ServiceApplicationStatus.UNDER_REVIEW.value,
                    ServiceApplicationStatus.APPROVED.value,
                    ServiceApplicationStatus.DENIED.value,
                }
            ),
            ServiceApplicationStatus.PENDING.value: frozenset(
                {ServiceApplicationStatus.APPROVED.value, ServiceApplicationStatus.DENIED.value}
            ),
            ServiceApplicationStatus.UNDER_REVIEW.value: frozenset(
                {ServiceApplicationStatus.APPROVED.value, ServiceApplicationStatus.DENIED.value}
            ),
            ServiceApplicationStatus.APPROVED.value: frozenset(
                {ServiceApplicationStatus.CANCELLED.value}
            ),
        },
    ),
    EntityKind.BILL: PayableEntity(
        kind=EntityKind.BILL,
        label="Bill",
        model=Bill,
        payable_statuses=frozenset({BillStatus.UNPAID.value, BillStatus.OVERDUE.value}),
        paid_status=BillStatus.PAID.value,
        fee_mode=FeeMode.ADDITIVE,
        initial_status=BillStatus.UNPAID.value,
        review_transitions={
            BillStatus.UNPAID.value: frozenset({BillStatus.OVERDUE.value, BillStatus.VOIDED.value}),
            BillStatus.OVERDUE.value: frozenset({BillStatus.VOIDED.value}),
        },
    ),
}


def get_payable_entity(kind: EntityKind | str) -> PayableEntity:
    try:
        return _REGISTRY[EntityKind(kind)]
    except ValueError:
        raise NotFoundError(f"Unknown record kind: {kind}") from None


def all_payable_entities() -> list[PayableEntity]:
    return list(_REGISTRY.values())
