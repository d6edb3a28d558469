"""
Dashboard derivation tests.

compute_dashboard is a pure function of the batch list.
"""
from datetime import datetime
from decimal import Decimal

from django.utils import timezone

from apps.payments.dashboard import compute_dashboard
from apps.payments.models import DashboardSnapshot, MonthlyPayment, PaymentBatch, PsychologistTotals


def make_batch(batch_id, status='pending', net='50.00', name='Dr. Ana Souza', paid_at=None):
    return PaymentBatch(
        id=batch_id,
        psychologist_id='psy-' + name.split()[-1].lower(),
        psychologist_name=name,
        created_by='admin-1',
        created_by_name='Carla Admin',
        created_at=timezone.make_aware(datetime(2024, 3, 1, 10, 0)),
        total_gross_value=Decimal(net) * 2,
        total_net_value=Decimal(net),
        appointment_ids=(f'{batch_id}-appt',),
        status=status,
        paid_at=paid_at,
    )


def paid_on(year, month, day):
    return timezone.make_aware(datetime(year, month, day, 12, 0))


class TestComputeDashboard:
    def test_empty_ledger(self):
        snapshot = compute_dashboard([])

        assert snapshot == DashboardSnapshot()
        assert snapshot.total_paid_amount == Decimal('0.00')
        assert snapshot.psychologist_payments == ()
        assert snapshot.monthly_payments == ()

    def test_counts_per_status(self):
        snapshot = compute_dashboard([
            make_batch('b1', 'pending'),
            make_batch('b2', 'pending'),
            make_batch('b3', 'approved'),
            make_batch('b4', 'contested'),
            make_batch('b5', 'paid', paid_at=paid_on(2024, 3, 20)),
        ])

        assert snapshot.total_pending_payments == 2
        assert snapshot.total_approved_payments == 1
        assert snapshot.total_contested_payments == 1

    def test_total_paid_amount_sums_paid_net(self):
        snapshot = compute_dashboard([
            make_batch('b1', 'paid', net='150.00', paid_at=paid_on(2024, 3, 20)),
            make_batch('b2', 'paid', net='80.50', paid_at=paid_on(2024, 4, 2)),
            make_batch('b3', 'approved', net='999.00'),
        ])

        assert snapshot.total_paid_amount == Decimal('230.50')

    def test_psychologist_totals_by_status(self):
        snapshot = compute_dashboard([
            make_batch('b1', 'pending', net='50.00'),
            make_batch('b2', 'approved', net='70.00'),
            make_batch('b3', 'contested', net='20.00'),
            make_batch('b4', 'paid', net='500.00', paid_at=paid_on(2024, 3, 20)),
            make_batch('b5', 'pending', net='30.00'),
        ])

        assert snapshot.psychologist_payments == (
            PsychologistTotals(
                psychologist_name='Dr. Ana Souza',
                total_pending=Decimal('80.00'),
                total_approved=Decimal('70.00'),
                total_contested=Decimal('20.00'),
            ),
        )

    def test_psychologists_in_first_appearance_order(self):
        snapshot = compute_dashboard([
            make_batch('b1', name='Dr. Bruno Lima'),
            make_batch('b2', name='Dr. Ana Souza'),
            make_batch('b3', name='Dr. Bruno Lima'),
        ])

        names = [totals.psychologist_name for totals in snapshot.psychologist_payments]
        assert names == ['Dr. Bruno Lima', 'Dr. Ana Souza']
        assert snapshot.psychologist_payments[0].total_pending == Decimal('100.00')

    def test_monthly_payments_grouped_by_month_and_psychologist(self):
        snapshot = compute_dashboard([
            make_batch('b1', 'paid', net='100.00', paid_at=paid_on(2024, 4, 5)),
            make_batch('b2', 'paid', net='40.00', paid_at=paid_on(2024, 3, 28)),
            make_batch('b3', 'paid', net='60.00', paid_at=paid_on(2024, 3, 2)),
            make_batch('b4', 'paid', net='25.00', name='Dr. Bruno Lima', paid_at=paid_on(2024, 3, 15)),
            make_batch('b5', 'approved', net='10.00'),
        ])

        assert snapshot.monthly_payments == (
            MonthlyPayment(month='2024-03', psychologist='Dr. Ana Souza', amount=Decimal('100.00')),
            MonthlyPayment(month='2024-03', psychologist='Dr. Bruno Lima', amount=Decimal('25.00')),
            MonthlyPayment(month='2024-04', psychologist='Dr. Ana Souza', amount=Decimal('100.00')),
        )

    def test_recomputation_is_idempotent(self):
        batches = [
            make_batch('b1', 'pending'),
            make_batch('b2', 'paid', paid_at=paid_on(2024, 3, 20)),
        ]

        assert compute_dashboard(batches) == compute_dashboard(batches)


class TestLedgerDashboard:
    def test_refresh_matches_cached_snapshot(self, ledger, make_appointment, admin_user):
        batch = ledger.create_batch('psy-1', [make_appointment(value=Decimal('300.00'))], admin_user)
        ledger.approve(batch.id)
        ledger.mark_paid(batch.id)

        assert ledger.refresh_dashboard() == ledger.dashboard
        assert ledger.refresh_dashboard() == ledger.refresh_dashboard()
        assert ledger.dashboard.total_paid_amount == Decimal('150.00')
        assert len(ledger.dashboard.monthly_payments) == 1

    def test_paid_batches_leave_psychologist_totals(self, ledger, make_appointment, admin_user):
        batch = ledger.create_batch('psy-1', [make_appointment()], admin_user)
        ledger.mark_paid(batch.id)

        [totals] = ledger.dashboard.psychologist_payments
        assert totals.total_pending == Decimal('0.00')
        assert totals.total_approved == Decimal('0.00')
