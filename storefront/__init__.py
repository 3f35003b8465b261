# Invictus Nutrition storefront: cart, shipping and checkout service
