from energy_trade_hub.reports import CERTIFICATE_COLUMNS, certificates_frame, registry_statistics
from tests.conftest import CONSUMER, PROVIDER


class TestReports:
    def test_empty_ledger(self, engine):
        df = certificates_frame(engine.state)
        stats = registry_statistics(engine.state, engine.log)

        assert df.empty
        assert list(df.columns) == CERTIFICATE_COLUMNS
        assert stats["total_certificates"] == 0
        assert stats["energy_by_source"] == {}
        assert stats["total_traded_value"] == 0

    def test_certificates_frame(self, engine, fake_listed_certificate, certificate_kwargs):
        certificate_kwargs["source_type"] = "wind"
        engine.create_token(PROVIDER, **certificate_kwargs)

        df = certificates_frame(engine.state)

        assert list(df["token_id"]) == [1, 2]
        assert list(df["is_for_sale"]) == [True, False]
        assert df.loc[0, "price"] == 50
        assert set(df["owner"]) == {PROVIDER}

    def test_registry_statistics(self, engine, fake_listed_certificate, certificate_kwargs):
        certificate_kwargs["source_type"] = "wind"
        certificate_kwargs["amount"] = 40
        engine.create_token(PROVIDER, **certificate_kwargs)
        engine.buy_token(fake_listed_certificate, CONSUMER, 60)
        engine.burn_token(fake_listed_certificate, CONSUMER)

        stats = registry_statistics(engine.state, engine.log)

        assert stats["total_certificates"] == 2
        assert stats["active_certificates"] == 1
        assert stats["retired_certificates"] == 1
        assert stats["listed_certificates"] == 0
        assert stats["active_energy"] == 40
        assert stats["retired_energy"] == 100
        assert stats["energy_by_source"] == {"solar": 100, "wind": 40}
        assert stats["total_purchases"] == 1
        assert stats["total_traded_value"] == 60
        assert stats["total_owners"] == 2
