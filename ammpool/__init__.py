"""
Two-asset AMM pool: configuration, reserve vaults, LP ledger and the deposit engine.
"""
