"""CardFund API Module."""
