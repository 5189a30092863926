"""
On-chain program bindings

- whirlpool: Orca Whirlpool layouts, math and address derivation
- vault: Vault program layout, address derivation and instruction encoding
"""
