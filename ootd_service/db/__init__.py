# Database module
from ootd_service.db.mongo import (
    connect,
    get_collection,
    health_check,
)
from ootd_service.db.wardrobe import (
    create_clothing_item,
    get_clothing_items,
    delete_clothing_item,
)
from ootd_service.db.outfits import (
    save_outfit,
    get_recent_item_ids,
)
from ootd_service.db.history import (
    get_profile,
    merge_preferences,
    get_liked_outfits,
)
