"""
Protocol layer

Orca Whirlpool account parsing, quoting and instruction building.
"""
