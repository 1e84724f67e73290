"""Wire schemas: inbound client events and outbound server events."""
