"""
The utility class `LazyLoadingDict` stores memoized objects produced
by a factory function from a hashable definition.

In this package it holds the Anthropic SDK clients, keyed by the
frozen ClientSettings they were configured with, and the LangChain
chat models, keyed by their provider settings. Asking the dictionary
twice for the same settings returns the same object, so that one
provider instance reuses one client configuration for all requests.

Values that expose a `close` or `dispose` method are released when
they are removed from the dictionary, unless a destructor function is
given in the constructor.
"""

from collections.abc import Callable
from typing import TypeVar

# ValueT is the parameter for the stored valued, KeyT for the keys.
ValueT = TypeVar('ValueT')
KeyT = TypeVar('KeyT')


class LazyLoadingDict(dict[KeyT, ValueT]):
    """A lazy dictionary class with memoized object of type ValueT.

    Example:
    ```python
    from pydantic import BaseModel, ConfigDict

    class Endpoint(BaseModel):
        base_url: str
        api_version: str

        # frozen models are hashable and may be used as keys
        model_config = ConfigDict(frozen=True)

    def _create_client(endpoint: Endpoint) -> Client:
        return Client(endpoint.base_url, endpoint.api_version)

    clients = LazyLoadingDict(_create_client)

    # created on first access, then retrieved
    client = clients[Endpoint(base_url="https://...", api_version="1")]
    ```

    It is also possible to assign to the dictionary directly, thus
    bypassing the factory function.

    Expected behaviour: may raise ValidationError and ValueErrors
    from the factory function.
    """

    def __init__(
        self,
        key_creator_func: Callable[[KeyT], ValueT],
        destructor_func: Callable[[ValueT], None] | None = None,
    ):
        super().__init__()
        self._key_creator_func = key_creator_func
        self._destructor_func = destructor_func

    def _destroy_value(self, value: ValueT) -> None:
        """Helper to destroy a value using the configured strategy."""
        if self._destructor_func:
            self._destructor_func(value)
        elif hasattr(value, "close") and callable(value.close):  # type: ignore
            value.close()  # type: ignore (checked)
        elif hasattr(value, "dispose") and callable(value.dispose):  # type: ignore
            value.dispose()  # type: ignore (checked)

    def __getitem__(self, key: KeyT) -> ValueT:
        # Check if the value is already cached
        if key in self:
            return super().__getitem__(key)

        # Lazy-load the data, cache it, and return
        value: ValueT = self._key_creator_func(key)
        super().__setitem__(key, value)
        return value

    def __setitem__(self, key: KeyT, value: ValueT) -> None:
        """Allow direct setting of key/value pairs.

        This bypasses the factory function for the given key.

        Raises:
            ValueError: If the key already exists in the dictionary.
        """
        if key in self:
            raise ValueError(
                f"Key '{key}' already exists. Delete it first to overwrite."
            )
        super().__setitem__(key, value)

    def __delitem__(self, key: KeyT) -> None:
        if key in self:
            value: ValueT = super().__getitem__(key)
            self._destroy_value(value)
        super().__delitem__(key)

    def clear(self) -> None:
        for value in list(self.values()):
            self._destroy_value(value)
        super().clear()
