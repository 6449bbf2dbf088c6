"""Big Frogs: big-frog and daily task lists with daily rollover and an evening reminder."""

__version__ = "0.1.0"
