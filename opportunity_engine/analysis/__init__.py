"""Single-timeframe analysis: market turns, regime flips, pullback checklist, order-book depth."""
