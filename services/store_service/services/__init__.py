"""Store Service operations, one module per aggregate."""
