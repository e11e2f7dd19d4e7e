from sqlalchemy import inspect as sa_inspect


def find_unknown_model_kwargs(model, kwargs: dict) -> list[str]:
    """
    Return the keys of `kwargs` that are not mapped attributes of `model`.
    - model: the SQLAlchemy model class (not instance)
    """
    mapper = sa_inspect(model)
    allowed = {attr.key for attr in mapper.attrs}
    return [k for k in kwargs.keys() if k not in allowed]


def get_required_columns(model) -> list[str]:
    """
    Columns that are NOT NULL, have no client/server default and are not auto PKs.
    """
    cols = []
    for col in model.__table__.columns:
        has_default = col.default is not None or col.server_default is not None
        is_auto_pk = col.primary_key and col.autoincrement in (True, "auto")
        if not col.nullable and not has_default and not is_auto_pk:
            cols.append(col.name)
    return cols


def get_non_nullable_columns(model) -> list[str]:
    """
    Every NOT NULL column, defaults included. An update may not set any of these to None.
    """
    return [col.name for col in model.__table__.columns if not col.nullable]


def get_searchable_columns(model, fields) -> list:
    """
    Resolve field names to column attributes, skipping names the model does not have.
    """
    return [getattr(model, f) for f in fields if hasattr(model, f)]
