from pydantic import BaseModel, ConfigDict


class CustomModel(BaseModel):
    """Custom base model with global configurations"""
    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True,
    )


# Import all SQLAlchemy models to ensure they are registered with Base.metadata
from genshin_dictionary.dictionary.models import DictionaryItem  # noqa: E402,F401
