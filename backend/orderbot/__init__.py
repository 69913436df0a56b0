"""WhatsApp order-intake bot."""
