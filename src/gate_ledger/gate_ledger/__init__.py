"""Gate Ledger package.

Feature modules (identities, ledger, resolution) each carry a repository
protocol, a MySQL implementation, a service and a thin Flask controller.
"""
