import json

from django.core.serializers.json import DjangoJSONEncoder
from django.db import models


class Configuration(models.Model):
    class DataType(models.TextChoices):
        TEXT = "text", "Plain text"
        NUMBER = "number", "Number"
        BOOLEAN = "boolean", "Boolean"
        JSON = "json", "JSON"

    key = models.CharField(
        max_length=255,
        unique=True,
        help_text="Unique identifier for the configuration setting",
    )
    data_type = models.CharField(
        max_length=10,
        choices=DataType.choices,
        default=DataType.TEXT,
        help_text="Data type of the value",
    )
    value = models.TextField(help_text="Value of the configuration setting")
    description = models.TextField(
        blank=True, help_text="Optional description of the configuration setting"
    )
    modified = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.key

    @classmethod
    def data_type_for(cls, value):
        # bool is checked first because it is a subclass of int
        if isinstance(value, bool):
            return cls.DataType.BOOLEAN
        elif isinstance(value, (int, float)):
            return cls.DataType.NUMBER
        elif isinstance(value, str):
            return cls.DataType.TEXT
        else:
            return cls.DataType.JSON

    def set_value(self, value):
        """
        Store a Python value in the text column using this row's data type
        """
        if self.data_type == Configuration.DataType.BOOLEAN:
            self.value = "true" if value else "false"
        elif self.data_type == Configuration.DataType.JSON:
            self.value = json.dumps(value, cls=DjangoJSONEncoder)
        else:
            self.value = str(value)

    def get_value(self):
        if self.data_type == Configuration.DataType.NUMBER:
            try:
                return int(self.value)
            except ValueError:
                try:
                    return float(self.value)
                except ValueError:
                    return 0
        elif self.data_type == Configuration.DataType.BOOLEAN:
            return self.value.lower() == "true"
        elif self.data_type == Configuration.DataType.JSON:
            return json.loads(self.value)
        else:
            # DataType.TEXT or an unknown type,
            # so just return the value itself
            return self.value
