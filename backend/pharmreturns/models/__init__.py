from pharmreturns.models.product import NDCProduct  # noqa: F401
