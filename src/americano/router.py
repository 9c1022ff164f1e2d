from tournament.models import Variant
from tournament.router import make_router

router = make_router(Variant.AMERICANO, prefix='/americano', tags=['Американо'])
