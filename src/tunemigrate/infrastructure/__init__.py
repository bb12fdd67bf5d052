"""Infrastructure layer: provider gateways, clients, observability, lifecycle."""
