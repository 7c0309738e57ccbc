"""tx3next - add TX3 capabilities to Next.js projects."""

__version__ = "0.1.0"
