from freedomgate.models.user import User
from freedomgate.models.admin import AdminUser
from freedomgate.models.subscription import Subscription, SubscriptionStatus
from freedomgate.models.transaction import Transaction, TransactionStatus
