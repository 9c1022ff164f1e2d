from tournament.models import Variant
from tournament.router import make_router

router = make_router(Variant.MEXICANO, prefix='/mexicano', tags=['Мексикано'])
