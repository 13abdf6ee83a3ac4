# Pydantic schemas
from alumni_portal.schemas.common import MessageResponse, PageMeta
from alumni_portal.schemas.auth import (
    UserRegister,
    UserLogin,
    Token,
    UserResponse,
    LoginResponse,
)
from alumni_portal.schemas.alumni import (
    ProfileCreate,
    ProfileUpdate,
    ProfileResponse,
    ProfileSummary,
)
from alumni_portal.schemas.news import NewsCreate, NewsUpdate, NewsResponse
from alumni_portal.schemas.event import EventCreate, EventUpdate, EventResponse
