"""Backend services for the Courtbook payment core.

Import services from their modules, e.g.
`from courtbook.services.doku_client import DokuClient`.
"""
