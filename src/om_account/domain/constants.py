"""Economy constants for newly opened accounts."""

STARTING_BALANCE: int = 100000  # $1000.00
STARTING_PRICE: int = 10000     # $100.00
INITIAL_VERSION: int = 1
