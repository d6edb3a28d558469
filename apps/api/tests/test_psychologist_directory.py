"""
Psychologist directory tests - commission rates used by the ledger.
"""
from decimal import Decimal

import pytest

from apps.authz.directory import PsychologistDirectory
from apps.authz.models import Psychologist

PSYCHOLOGISTS_URL = '/api/v1/authz/psychologists/'


class TestDirectory:
    def test_from_config(self):
        directory = PsychologistDirectory.from_config([
            {'id': 'psy-1', 'name': 'Dr. Ana Souza'},
            {'id': 2, 'name': 'Dr. Bruno Lima', 'commission_percentage': 40},
        ])

        assert len(directory) == 2
        assert directory.get('2').commission_percentage == Decimal('40')
        assert directory.get('psy-1').commission_percentage is None

    def test_commission_falls_back_to_default(self):
        directory = PsychologistDirectory([Psychologist(id='psy-1', name='Dr. Ana Souza')])

        assert directory.commission_for('psy-1', default=Decimal('50')) == Decimal('50')
        assert directory.commission_for('unknown', default=Decimal('45')) == Decimal('45')

    @pytest.mark.parametrize('percentage', [-1, Decimal('100.01')])
    def test_percentage_out_of_range(self, percentage):
        with pytest.raises(ValueError):
            PsychologistDirectory([Psychologist(id='psy-1', name='Dr. Ana', commission_percentage=percentage)])

    def test_register_replaces_entry(self):
        directory = PsychologistDirectory([Psychologist(id='psy-1', name='Dr. Ana', commission_percentage=50)])

        directory.register(Psychologist(id='psy-1', name='Dr. Ana Souza', commission_percentage=70))

        assert len(directory) == 1
        assert directory.display_name('psy-1') == 'Dr. Ana Souza'
        assert directory.commission_for('psy-1', default=50) == Decimal('70')

    def test_list_sorted_and_active_only(self):
        directory = PsychologistDirectory([
            Psychologist(id='3', name='Dr. Carla'),
            Psychologist(id='1', name='Dr. Ana'),
            Psychologist(id='2', name='Dr. Bruno', is_active=False),
        ])

        assert [p.name for p in directory.list()] == ['Dr. Ana', 'Dr. Carla']
        assert [p.name for p in directory.list(include_inactive=True)] == ['Dr. Ana', 'Dr. Bruno', 'Dr. Carla']


@pytest.mark.django_db
class TestDirectoryAPI:
    def test_any_role_lists(self, psychologist_client):
        response = psychologist_client.get(PSYCHOLOGISTS_URL)

        assert response.status_code == 200
        assert [p['id'] for p in response.data] == ['psy-1', 'psy-2']
        assert response.data[1]['commission_percentage'] == '40.00'

    def test_retrieve_unknown_404(self, admin_client):
        response = admin_client.get(f'{PSYCHOLOGISTS_URL}missing/')

        assert response.status_code == 404

    def test_admin_creates_then_updates(self, admin_client):
        payload = {'name': 'Dr. Carla Mendes', 'commission_percentage': '55.00'}

        created = admin_client.put(f'{PSYCHOLOGISTS_URL}psy-3/', payload, format='json')
        updated = admin_client.put(
            f'{PSYCHOLOGISTS_URL}psy-3/',
            {**payload, 'commission_percentage': '60.00'},
            format='json'
        )

        assert created.status_code == 201
        assert updated.status_code == 200
        assert updated.data['commission_percentage'] == '60.00'

    def test_receptionist_cannot_write(self, receptionist_client):
        response = receptionist_client.put(f'{PSYCHOLOGISTS_URL}psy-1/', {'name': 'Dr. Ana'}, format='json')

        assert response.status_code == 403

    def test_percentage_above_100_rejected(self, admin_client):
        response = admin_client.put(
            f'{PSYCHOLOGISTS_URL}psy-1/',
            {'name': 'Dr. Ana Souza', 'commission_percentage': '120'},
            format='json'
        )

        assert response.status_code == 400

    def test_new_rate_applies_to_new_batches_only(self, admin_client, ledger, make_appointment, admin_user):
        before = ledger.create_batch('psy-1', [make_appointment(value=Decimal('100.00'))], admin_user)

        admin_client.put(
            f'{PSYCHOLOGISTS_URL}psy-1/',
            {'name': 'Dr. Ana Souza', 'commission_percentage': '70'},
            format='json'
        )
        after = ledger.create_batch('psy-1', [make_appointment(value=Decimal('100.00'))], admin_user)

        assert ledger.get_batch(before.id).total_net_value == Decimal('50.00')
        assert after.total_net_value == Decimal('70.00')
