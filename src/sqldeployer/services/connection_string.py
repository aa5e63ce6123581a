"""Connection string parsing for SqlDeployer."""

from typing import Dict, Optional

from sqldeployer.errors import InvalidConnectionStringError


class ConnectionString:
    """Parsed ADO.NET style connection string (``Key=Value;Key=Value``).

    Keys are case-insensitive and normalized through ``KEY_ALIASES``. Values
    may be quoted with single or double quotes; inside quotes ``;`` and ``=``
    are literal and a doubled quote stands for the quote character itself.
    """

    KEY_ALIASES = {
        "server": "server",
        "data source": "server",
        "address": "server",
        "addr": "server",
        "network address": "server",
        "database": "database",
        "initial catalog": "database",
        "user id": "user id",
        "userid": "user id",
        "uid": "user id",
        "user": "user id",
        "password": "password",
        "pwd": "password",
        "integrated security": "integrated security",
        "trusted_connection": "integrated security",
        "authentication": "authentication",
    }

    TRUE_VALUES = {"true", "yes", "sspi"}

    def __init__(self, connection_string: str):
        self.connection_string = connection_string
        self._values = self._parse(connection_string)
        self._validate()

    @property
    def server(self) -> Optional[str]:
        return self._values.get("server")

    @property
    def database(self) -> Optional[str]:
        return self._values.get("database")

    @property
    def user_id(self) -> Optional[str]:
        return self._values.get("user id")

    @property
    def password(self) -> Optional[str]:
        return self._values.get("password")

    @property
    def authentication(self) -> Optional[str]:
        return self._values.get("authentication")

    @property
    def integrated_security(self) -> bool:
        value = self._values.get("integrated security", "")
        return value.strip().lower() in self.TRUE_VALUES

    def get(self, key: str) -> Optional[str]:
        normalized = key.strip().lower()
        return self._values.get(self.KEY_ALIASES.get(normalized, normalized))

    def __repr__(self) -> str:
        return (
            f"ConnectionString(server={self.server!r}, database={self.database!r}, "
            f"user_id={self.user_id!r})"
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, ConnectionString):
            return NotImplemented
        return self.connection_string == other.connection_string

    def __hash__(self) -> int:
        return hash(self.connection_string)

    def _parse(self, text: str) -> Dict[str, str]:
        if not text or not text.strip():
            raise InvalidConnectionStringError("Connection string is empty.")

        values: Dict[str, str] = {}
        position = 0
        length = len(text)

        while position < length:
            separator = text.find("=", position)
            next_semicolon = text.find(";", position)
            if separator == -1 or (next_semicolon != -1 and next_semicolon < separator):
                segment_end = length if next_semicolon == -1 else next_semicolon
                if text[position:segment_end].strip():
                    raise InvalidConnectionStringError(
                        f"Invalid connection string segment: '{text[position:segment_end].strip()}'. "
                        "Expected 'Key=Value'."
                    )
                position = segment_end + 1
                continue

            key = text[position:separator].strip().lower()
            if not key:
                raise InvalidConnectionStringError("Connection string contains an empty key.")

            value, position = self._read_value(text, separator + 1)
            values[self.KEY_ALIASES.get(key, key)] = value

        return values

    def _read_value(self, text: str, position: int):
        length = len(text)
        while position < length and text[position].isspace():
            position += 1

        if position < length and text[position] in ("'", '"'):
            quote = text[position]
            position += 1
            chars = []
            while True:
                if position >= length:
                    raise InvalidConnectionStringError(
                        "Connection string contains an unterminated quoted value."
                    )
                char = text[position]
                if char == quote:
                    if position + 1 < length and text[position + 1] == quote:
                        chars.append(quote)
                        position += 2
                        continue
                    position += 1
                    break
                chars.append(char)
                position += 1

            while position < length and text[position].isspace():
                position += 1
            if position < length and text[position] != ";":
                raise InvalidConnectionStringError(
                    "Unexpected characters after quoted value in connection string."
                )
            return "".join(chars), position + 1

        end = text.find(";", position)
        if end == -1:
            end = length
        return text[position:end].strip(), end + 1

    def _validate(self):
        if not self.database:
            raise InvalidConnectionStringError(
                "Connection string is missing the database ('Initial Catalog' or 'Database')."
            )

        if self.integrated_security:
            return

        if not self.user_id:
            raise InvalidConnectionStringError(
                "Connection string is missing the user id ('User Id' or 'UID')."
            )
        if self.password is None:
            raise InvalidConnectionStringError(
                "Connection string is missing the password ('Password' or 'PWD')."
            )
