"""Exceptions raised throughout the package."""


class MissingColumnsError(ValueError):
    def __init__(self, missing: set[str]):
        self.missing = missing
        message = f'Table is missing required columns: {sorted(missing)}'
        super().__init__(message)


class UnknownDatasetError(ValueError):
    def __init__(self, name: str, choices: tuple[str, ...]):
        self.name = name
        self.choices = choices
        super().__init__(f'Unknown dataset "{name}". Choose one of {list(choices)} or an .h5ad path.')


class TableFormatError(ValueError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f'Unsupported table format (use .tsv, .csv, or .pkl): {path}')


class InsufficientPointsError(ValueError):
    def __init__(self, count: int, required: int):
        self.count = count
        self.required = required
        super().__init__(f'Need at least {required} points, got {count}.')


class UnknownMethodError(ValueError):
    def __init__(self, name: str, choices: tuple[str, ...]):
        self.name = name
        self.choices = choices
        super().__init__(f'Unknown option "{name}". Expected one of: {", ".join(choices)}.')
