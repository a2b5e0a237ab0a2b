from energy_trade_hub.payments import InMemoryPaymentGateway, PaymentReceipt


class TestInMemoryPaymentGateway:
    def test_send_credits_recipient(self, payment_gateway):
        assert payment_gateway.send("utility-co", "solar-farm", 50) is True

        assert payment_gateway.balance_of("solar-farm") == 50
        assert payment_gateway.receipts == [
            PaymentReceipt(payer="utility-co", recipient="solar-farm", amount=50)
        ]

    def test_rejecting_hook_reverts_credit(self, payment_gateway):
        def reject(payer, amount):
            raise RuntimeError("wallet offline")

        payment_gateway.on_receipt("solar-farm", reject)

        assert payment_gateway.send("utility-co", "solar-farm", 50) is False
        assert payment_gateway.balance_of("solar-farm") == 0
        assert payment_gateway.receipts == []

    def test_refund_reverses_latest_matching_payment(self):
        gateway = InMemoryPaymentGateway()
        gateway.send("utility-co", "solar-farm", 50)
        gateway.send("data-centre", "solar-farm", 20)
        gateway.send("utility-co", "solar-farm", 50)

        gateway.refund(PaymentReceipt(payer="utility-co", recipient="solar-farm", amount=50))

        assert gateway.balance_of("solar-farm") == 70
        assert [r.payer for r in gateway.receipts] == ["utility-co", "data-centre"]
