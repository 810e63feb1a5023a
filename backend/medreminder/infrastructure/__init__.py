"""Infrastructure Layer — IO adapters implementing core boundary protocols."""
