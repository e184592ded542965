"""Rules for a turn-based tactical game on a node graph: messages, health, turns, weapons, inventory, nodes, support strikes and rifle enemies."""

__version__ = "0.1.0"