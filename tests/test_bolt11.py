"""Tests for BOLT11 amount extraction."""

from lightning_intents.bolt11 import invoice_amount_msat


class TestInvoiceAmountMsat:
    def test_micro_btc(self):
        # lnbc10u = 0.00001 BTC = 1000 sats
        assert invoice_amount_msat("lnbc10u1ptest") == 1_000_000

    def test_milli_btc(self):
        assert invoice_amount_msat("lnbc1m1ptest") == 100_000_000

    def test_nano_btc(self):
        # lnbc1000n = 100 sats
        assert invoice_amount_msat("lnbc1000n1ptest") == 100_000

    def test_pico_btc_sub_sat(self):
        # 10 pico-BTC is exactly 1 msat
        assert invoice_amount_msat("lnbc10p1ptest") == 1

    def test_pico_not_whole_msat(self):
        assert invoice_amount_msat("lnbc15p1ptest") is None

    def test_whole_btc(self):
        assert invoice_amount_msat("lnbc21ptest") == 200_000_000_000

    def test_any_amount_invoice(self):
        assert invoice_amount_msat("lnbc1ptest") is None

    def test_testnet_and_regtest(self):
        assert invoice_amount_msat("lntb5u1ptest") == 500_000
        assert invoice_amount_msat("lnbcrt5u1ptest") == 500_000

    def test_case_insensitive(self):
        assert invoice_amount_msat("LNBC5U1PTEST") == 500_000

    def test_garbage(self):
        assert invoice_amount_msat("") is None
        assert invoice_amount_msat("not-a-bolt11") is None
