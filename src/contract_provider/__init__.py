"""
contract_provider — certificate provisioning sidecar for a trust-chain network.

Obtains a signed client certificate from the participant's PKI, periodically
fetches the verification chain from the contract repository, and stores key,
certificate, CA and chain on the local filesystem or in a Kubernetes secret.

Built on the Railway-Oriented Programming (ROP) framework for
explicit, composable, functional error handling.
"""

__version__ = "0.1.0"
