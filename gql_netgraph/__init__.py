"""GraphQL operations library generator for Netlify Graph style runtimes."""

__version__ = "0.1.0"
