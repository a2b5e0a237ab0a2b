#!/usr/bin/env python3
"""
Quick Demo - See the certificate lifecycle in action.
Run this file to walk one certificate from creation to retirement.
"""

import sys
import os

# Add the package to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

try:
    from energy_trade_hub import (
        AlreadyRetired,
        InMemoryPaymentGateway,
        NotForSale,
        build_engine,
    )
    from energy_trade_hub.reports import certificates_frame, registry_statistics

    print("=" * 70)
    print("⚡ ENERGY TRADE HUB - QUICK DEMO ⚡")
    print("=" * 70)
    print()

    # Step 1: Bootstrap the ledger
    print("🏗️  Step 1: Bootstrapping the ledger...")
    payments = InMemoryPaymentGateway()
    engine = build_engine(admin="deployer", payments=payments)
    engine.add_provider("solar-farm", "deployer")
    engine.register_as_consumer("utility-co")
    print("   ✅ deployer is Admin, solar-farm is Provider, utility-co is Consumer")
    print()

    # Step 2: Create a certificate
    print("📝 Step 2: solar-farm creates a certificate...")
    token_id = engine.create_token(
        "solar-farm",
        amount=100,
        price_per_unit=45,
        start_date=100,
        end_date=200,
        source_type="solar",
        delivery_point="NL-North-01",
        terms_hash="0x9f2c",
    )
    cert = engine.get_certificate(token_id)
    print(f"   ✅ Certificate #{cert.token_id}: {cert.energy_amount} MWh, owner {cert.owner}")
    print()

    # Step 3: List it
    print("🏷️  Step 3: Listing the certificate at 50...")
    engine.list_token_for_sale(token_id, 50, "solar-farm")
    print(f"   ✅ Sale status: {engine.sale_status(token_id)}")
    print()

    # Step 4: A reentrant seller tries to sell twice
    print("🛡️  Step 4: Seller's wallet tries to buy it back during payment...")

    def greedy_seller(payer, amount):
        try:
            engine.buy_token(token_id, "solar-farm", amount)
        except NotForSale as e:
            print(f"   🚫 Nested purchase rejected: {e}")

    payments.on_receipt("solar-farm", greedy_seller)
    engine.buy_token(token_id, "utility-co", 60)
    print(f"   ✅ Owner is now {engine.owner_of(token_id)}")
    print(f"   💰 solar-farm received {payments.balance_of('solar-farm')}")
    print()

    # Step 5: Retire it
    print("🔥 Step 5: utility-co retires the certificate...")
    engine.burn_token(token_id, "utility-co")
    print(f"   ✅ State: {engine.certificate_state(token_id).value}")
    try:
        engine.burn_token(token_id, "utility-co")
    except AlreadyRetired as e:
        print(f"   🚫 Second burn rejected: {e}")
    print()

    # Step 6: Reports
    print("📊 Step 6: Registry report:")
    print(certificates_frame(engine.state).to_string(index=False))
    print()
    for key, value in registry_statistics(engine.state, engine.log).items():
        print(f"   {key}: {value}")
    print()

    print("📜 Notifications:")
    for event in engine.log.events:
        print(f"   #{event.sequence} {event.event_type.value} token {event.token_id} by {event.actor}")
    print()

    print("=" * 70)
    print("🎉 DEMO COMPLETE!")
    print("=" * 70)
    print()
    print("💡 Next steps:")
    print("   1. Start API: 'eth-api' or 'python -m energy_trade_hub.api'")
    print("   2. Visit http://localhost:8000/docs for API documentation")
    print()

except ImportError as e:
    print("❌ Error: Missing dependencies")
    print(f"   {e}")
    print()
    print("💡 Solution: Install dependencies with:")
    print("   pip install -r requirements.txt")
    print()
    sys.exit(1)
