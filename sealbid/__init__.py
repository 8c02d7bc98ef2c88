"""
Sealbid - Uniform-price sealed-bid auction clearing

Integrates:
- Clearing-price search over fixed supply or fixed raise targets
- Priority tie-breaks and partial fills for the marginal bidder
- Self-verification of conservation and price consistency
- Claim merkle trees and reward splits over clearing results
"""

__version__ = "0.1.0"
