"""Gallery API: cache-aside image gallery over a media host."""
