"""
Tests for the Energy Trade Hub as a whole
"""

import unittest

from energy_trade_hub import (
    AlreadyRetired,
    CertificateState,
    EnergyCertificate,
    EventType,
    InMemoryPaymentGateway,
    LedgerState,
    LifecycleEngine,
    NotForSale,
    Role,
)


class TestCertificateModels(unittest.TestCase):
    """Test certificate models"""

    def test_certificate_defaults(self):
        """A new certificate is active"""
        cert = EnergyCertificate(
            token_id=1,
            issuer="solar-farm",
            owner="solar-farm",
            energy_amount=100,
            price_per_unit=45,
            start_date=100,
            end_date=200,
            source_type="solar",
            delivery_point="NL-North-01",
            contract_terms_hash="0x9f2c",
        )

        self.assertTrue(cert.is_active)
        self.assertEqual(cert.metadata_ref, "")

    def test_role_values(self):
        self.assertEqual(str(Role.PROVIDER), "provider")


class TestMarketplace(unittest.TestCase):
    """Two providers and two consumers trading on one ledger"""

    def setUp(self):
        """Set up test fixtures"""
        self.payments = InMemoryPaymentGateway()
        self.engine = LifecycleEngine(LedgerState(admin="deployer"), self.payments)

        for provider in ("solar-farm", "wind-park"):
            self.engine.add_provider(provider, "deployer")
        for consumer in ("utility-co", "data-centre"):
            self.engine.register_as_consumer(consumer)

        self.solar_id = self.engine.create_token(
            "solar-farm", 100, 40, 1_700_000_000, 1_700_086_400,
            "solar", "NL-North-01", "0xsolar",
        )
        self.wind_id = self.engine.create_token(
            "wind-park", 250, 35, 1_700_000_000, 1_700_604_800,
            "wind", "DE-Offshore-3", "0xwind",
        )

    def test_resale_chain(self):
        """A certificate can be sold on before it is retired"""
        self.engine.list_token_for_sale(self.wind_id, 8000, "wind-park")
        self.engine.buy_token(self.wind_id, "utility-co", 8000)

        self.engine.list_token_for_sale(self.wind_id, 9000, "utility-co")
        self.engine.buy_token(self.wind_id, "data-centre", 9500)

        self.assertEqual(self.engine.owner_of(self.wind_id), "data-centre")
        self.assertEqual(self.payments.balance_of("wind-park"), 8000)
        self.assertEqual(self.payments.balance_of("utility-co"), 9500)

        self.engine.burn_token(self.wind_id, "data-centre")
        self.assertEqual(
            self.engine.certificate_state(self.wind_id), CertificateState.RETIRED
        )

        with self.assertRaises(AlreadyRetired):
            self.engine.burn_token(self.wind_id, "data-centre")

    def test_independent_certificates(self):
        """Trading one certificate leaves the other untouched"""
        self.engine.list_token_for_sale(self.solar_id, 4000, "solar-farm")
        self.engine.buy_token(self.solar_id, "utility-co", 4000)

        self.assertEqual(self.engine.owner_of(self.wind_id), "wind-park")
        self.assertEqual(
            self.engine.certificate_state(self.wind_id), CertificateState.ACTIVE_UNLISTED
        )

        with self.assertRaises(NotForSale):
            self.engine.buy_token(self.wind_id, "utility-co", 10_000)

    def test_notifications_in_order(self):
        self.engine.list_token_for_sale(self.solar_id, 4000, "solar-farm")
        self.engine.withdraw_token_from_sale(self.solar_id, "solar-farm")

        self.assertEqual(
            [event.event_type for event in self.engine.log.events],
            [EventType.CREATED, EventType.CREATED, EventType.LISTED, EventType.WITHDRAWN],
        )


if __name__ == '__main__':
    unittest.main()
