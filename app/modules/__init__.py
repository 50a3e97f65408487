"""
Feature modules of the ASOF CMS API.

auth: admin sessions, login and the admin route guard decision
user_management: admin panel users and roles
posts, categories, tags: website content
media: media library backed by R2 storage
audit: change history of content
dashboard: admin area statistics
"""
