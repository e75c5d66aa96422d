"""Daily reminder run.

One run, for a fixed reference date:

1. selects open invoices due exactly 7, 3 or 1 days ahead and cost item
   bindings ending exactly 30 or 7 days ahead, across every organization;
2. groups the matches by organization;
3. for each organization, resolves the members' contact addresses, hands one
   notification batch per member to the notifier and writes one audit record.

Organizations are isolated from each other: a failure while reading an
organization's memberships or writing its audit record is logged, the
organization is reported as failed, and the run carries on. Audit records
already written stay written.

Known gaps, left open:
- a day without a run permanently misses that day's buckets (no backfill);
- two runs on the same day send the same reminders twice (no dedup).
"""

import contextvars
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from financeapp import metrics
from financeapp.core.costs.windows import (
    BINDING_REMINDER_OFFSETS,
    INVOICE_REMINDER_OFFSETS,
    bindings_ending_on_offsets,
    invoices_due_on_offsets,
    target_dates,
)
from financeapp.core.ports import AuditLog, ContactDirectory, Notifier, ReminderSource
from financeapp.domain.value_objects import (
    CostItem,
    Invoice,
    NotificationBatch,
    ReminderAuditRecord,
    ReminderRunResult,
)
from financeapp.exceptions import (
    AuditWriteError,
    DataSourceError,
    IdentityResolutionError,
    NotificationDeliveryError,
)
from financeapp.utils.config import DEFAULT_REMINDER_SUBJECT, Settings
from financeapp.utils.datetime import as_date, utc_now
from financeapp.utils.logging import (
    LogPerformance,
    get_logger,
    log_notification_sent,
    log_reminder_audit,
    set_correlation_id,
)

logger = get_logger(__name__)

DAILY_CHECK = "daily_check"


@dataclass(frozen=True)
class ReminderPolicy:
    """Offsets and wording of a reminder run."""

    invoice_offsets: tuple[int, ...] = INVOICE_REMINDER_OFFSETS
    binding_offsets: tuple[int, ...] = BINDING_REMINDER_OFFSETS
    reminder_type: str = DAILY_CHECK
    subject: str = DEFAULT_REMINDER_SUBJECT

    @classmethod
    def from_settings(cls, settings: Settings) -> "ReminderPolicy":
        return cls(
            invoice_offsets=tuple(settings.reminder_invoice_offsets),
            binding_offsets=tuple(settings.reminder_binding_offsets),
            reminder_type=settings.reminder_type,
            subject=settings.reminder_subject,
        )


@dataclass(frozen=True)
class OrganizationOutcome:
    """Result of processing one organization within a run."""

    organization_id: UUID
    batches_sent: int
    audit_written: bool


class ReminderDispatcher:
    """Builds and dispatches reminder batches for all organizations."""

    def __init__(
        self,
        source: ReminderSource,
        directory: ContactDirectory,
        audit_log: AuditLog,
        notifier: Notifier,
        policy: ReminderPolicy | None = None,
        clock: Callable[[], datetime] = utc_now,
        max_workers: int = 1,
    ):
        """Initialize dispatcher.

        Args:
            source: Tenant-spanning reader for invoices, bindings and memberships
            directory: Resolves member user ids to contact addresses
            audit_log: Persists one audit record per organization
            notifier: Delivers notification batches
            policy: Offsets, reminder type and subject
            clock: Returns the current UTC timestamp
            max_workers: Organizations processed in parallel (1 = sequential)
        """
        self.source = source
        self.directory = directory
        self.audit_log = audit_log
        self.notifier = notifier
        self.policy = policy or ReminderPolicy()
        self.clock = clock
        self.max_workers = max(1, max_workers)

    @property
    def notifier_type(self) -> str:
        return getattr(self.notifier, "notifier_type", type(self.notifier).__name__)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select_invoices(self, today: date) -> list[Invoice]:
        """Open invoices due exactly on one of the invoice offsets."""
        offsets = self.policy.invoice_offsets
        try:
            candidates = self.source.find_open_invoices_due_on(target_dates(offsets, today))
        except DataSourceError as e:
            logger.error("reminder_invoices_unavailable", error=str(e), context=e.context)
            return []
        return invoices_due_on_offsets(candidates, offsets, today)

    def select_bindings(self, today: date) -> list[CostItem]:
        """Cost items whose binding ends exactly on one of the binding offsets."""
        offsets = self.policy.binding_offsets
        try:
            candidates = self.source.find_bindings_ending_on(target_dates(offsets, today))
        except DataSourceError as e:
            logger.error("reminder_bindings_unavailable", error=str(e), context=e.context)
            return []
        return bindings_ending_on_offsets(candidates, offsets, today)

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self, today: date | None = None) -> ReminderRunResult:
        """Execute one reminder run and return its summary."""
        set_correlation_id()
        reference = as_date(today) if today is not None else self.clock().date()

        with LogPerformance("reminder_run", logger) as perf:
            invoices = self.select_invoices(reference)
            bindings = self.select_bindings(reference)

            organization_ids = _organizations_in_order(invoices, bindings)
            logger.info(
                "reminder_run_started",
                today=reference.isoformat(),
                invoices=len(invoices),
                bindings=len(bindings),
                organizations=len(organization_ids),
            )

            outcomes = self._process_all(organization_ids, invoices, bindings)

        metrics.observe_run_duration(perf.duration)

        failed = [o.organization_id for o in outcomes if not o.audit_written]
        result = ReminderRunResult(
            success=True,
            reminders_sent=sum(o.batches_sent for o in outcomes),
            organizations_processed=sum(1 for o in outcomes if o.audit_written),
            invoices_checked=len(invoices),
            bindings_checked=len(bindings),
            timestamp=self.clock(),
            organizations_failed=failed,
        )
        logger.info(
            "reminder_run_finished",
            reminders_sent=result.reminders_sent,
            organizations_processed=result.organizations_processed,
            organizations_failed=len(failed),
        )
        return result

    def _process_all(
        self,
        organization_ids: Sequence[UUID],
        invoices: Sequence[Invoice],
        bindings: Sequence[CostItem],
    ) -> list[OrganizationOutcome]:
        def process(organization_id: UUID) -> OrganizationOutcome:
            org_invoices = tuple(i for i in invoices if i.organization_id == organization_id)
            org_bindings = tuple(b for b in bindings if b.organization_id == organization_id)
            try:
                return self.process_organization(organization_id, org_invoices, org_bindings)
            except Exception as e:
                logger.exception(
                    "reminder_organization_failed",
                    organization_id=str(organization_id),
                    error=str(e),
                    error_type=type(e).__name__,
                )
                metrics.record_organization_failure("unexpected")
                return OrganizationOutcome(organization_id, batches_sent=0, audit_written=False)

        if self.max_workers == 1 or len(organization_ids) <= 1:
            return [process(organization_id) for organization_id in organization_ids]

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            # One context copy per task keeps the run's correlation id in worker threads
            futures = [
                executor.submit(contextvars.copy_context().run, process, organization_id)
                for organization_id in organization_ids
            ]
            return [future.result() for future in futures]

    def process_organization(
        self,
        organization_id: UUID,
        invoices: tuple[Invoice, ...],
        bindings: tuple[CostItem, ...],
    ) -> OrganizationOutcome:
        """Notify the members of one organization and write its audit record."""
        org_log = logger.bind(organization_id=str(organization_id))

        try:
            recipients = self.resolve_recipients(organization_id)
        except DataSourceError as e:
            org_log.error("reminder_memberships_unavailable", error=str(e))
            metrics.record_organization_failure("memberships")
            return OrganizationOutcome(organization_id, batches_sent=0, audit_written=False)

        if not recipients:
            org_log.warning("reminder_no_recipients")

        sent = 0
        for recipient in recipients:
            batch = NotificationBatch(
                recipient=recipient,
                subject=self.policy.subject,
                organization_id=organization_id,
                invoices=invoices,
                bindings=bindings,
            )
            if self._deliver(batch):
                sent += 1

        audit_record = ReminderAuditRecord(
            organization_id=organization_id,
            reminder_type=self.policy.reminder_type,
            invoices_count=len(invoices),
            bindings_count=len(bindings),
            sent_at=self.clock(),
        )
        try:
            self.audit_log.record(audit_record)
        except AuditWriteError as e:
            org_log.error("reminder_audit_write_failed", error=str(e))
            metrics.record_organization_failure("audit")
            return OrganizationOutcome(organization_id, batches_sent=sent, audit_written=False)

        metrics.record_audit_written(audit_record.reminder_type)
        log_reminder_audit(
            logger,
            organization_id=str(organization_id),
            reminder_type=audit_record.reminder_type,
            invoices_count=audit_record.invoices_count,
            bindings_count=audit_record.bindings_count,
        )
        return OrganizationOutcome(organization_id, batches_sent=sent, audit_written=True)

    def resolve_recipients(self, organization_id: UUID) -> list[str]:
        """Contact addresses of all members; unresolvable members are skipped."""
        memberships = self.source.list_memberships(organization_id)

        recipients: list[str] = []
        seen_users: set[UUID] = set()
        for membership in memberships:
            if membership.user_id in seen_users:
                continue
            seen_users.add(membership.user_id)
            try:
                contact = self.directory.resolve_contact(membership.user_id)
            except IdentityResolutionError as e:
                logger.warning(
                    "reminder_member_unresolved",
                    organization_id=str(organization_id),
                    user_id=str(membership.user_id),
                    error=str(e),
                )
                continue
            if contact:
                recipients.append(contact)
        return recipients

    def _deliver(self, batch: NotificationBatch) -> bool:
        try:
            self.notifier.send(batch)
        except NotificationDeliveryError as e:
            logger.warning(
                "reminder_delivery_failed",
                organization_id=str(batch.organization_id),
                recipient=batch.recipient,
                error=str(e),
            )
            return False

        metrics.record_reminder_sent(self.notifier_type)
        log_notification_sent(
            logger,
            organization_id=str(batch.organization_id),
            recipient=batch.recipient,
            invoices_count=len(batch.invoices),
            bindings_count=len(batch.bindings),
        )
        return True


def _organizations_in_order(
    invoices: Sequence[Invoice], bindings: Sequence[CostItem]
) -> list[UUID]:
    """Distinct organization ids, invoices first, in first-seen order."""
    seen: dict[UUID, None] = {}
    for invoice in invoices:
        seen.setdefault(invoice.organization_id, None)
    for item in bindings:
        seen.setdefault(item.organization_id, None)
    return list(seen)
