from localehub.models.project import Project
from localehub.models.feature import Feature
from localehub.models.language import Language
from localehub.models.key import LocalizationKey
from localehub.models.translation import Translation
