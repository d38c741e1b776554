"""
Exchange-facing pieces: contract ABIs, venue types and router quoting.
"""
