"""State owners.

Each piece of mutable core state (keyword, inbox) has exactly one owner in
this package and is changed only through that owner's operations.
"""
