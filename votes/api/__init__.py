"""HTTP surface for the vote tally."""
