# pkitree/commands/helpers.py

from __future__ import annotations

import argparse
from typing import Type, TypeVar

from pydantic import BaseModel

ModelT = TypeVar("ModelT", bound=BaseModel)

def prune_opts(model: Type[ModelT], ns: argparse.Namespace, **extra) -> ModelT:
    """
    Prune an argparse namespace down to fields the Pydantic model knows about,
    then validate. Unknown args (database, handler, etc.) are ignored.
    Keyword arguments override namespace values.
    """
    data = vars(ns)
    allowed = model.model_fields.keys()
    pruned = {k: data[k] for k in allowed if k in data}
    pruned.update(extra)

    return model.model_validate(pruned)
