"""Infrastructure Layer: filesystem storage and logging setup."""
