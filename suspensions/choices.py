from django.db import models


class SuspensionType(models.TextChoices):
    WARNING = "warning", "Warning"
    TEMPORARY = "temporary", "Temporary"
    PERMANENT = "permanent", "Permanent"


class BanType(models.TextChoices):
    NONE = "none", "None"
    CONTENT_VISIBLE = "content_visible", "Content visible, posting blocked"
    CONTENT_HIDDEN = "content_hidden", "Content hidden"


class ReviewAction(models.TextChoices):
    EXTEND = "extend", "Extend"
    REDUCE = "reduce", "Reduce"
    REMOVE = "remove", "Remove"
    MAKE_PERMANENT = "make_permanent", "Make permanent"
