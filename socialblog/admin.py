from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from .models import User
from .models import Blog
from .models import Comment
from .models import Notification


class SocialUserAdmin(UserAdmin):
    list_display = ('id', 'username', 'fullname', 'email', 'is_private')
    list_filter = UserAdmin.list_filter + ('is_private',)
    search_fields = ('username', 'fullname', 'email')
    filter_horizontal = UserAdmin.filter_horizontal + ('followers',)
    fieldsets = UserAdmin.fieldsets + (
        ('Profile', {'fields': ('fullname', 'bio', 'profile_image_url', 'is_private', 'followers')}),
    )

# Register User with Django's UserAdmin so passwords are hashed in /admin
admin.site.register(User, SocialUserAdmin)


@admin.register(Blog)
class BlogAdmin(admin.ModelAdmin):
    list_display = ("title", "author", "id", "created_at")
    search_fields = ("title", "body", "author__username")
    list_filter = ("created_at",)
    filter_horizontal = ("likes",)


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ('id', 'blog', 'author', 'parent', 'created_at')
    search_fields = ('content', 'author__username', 'blog__title')
    filter_horizontal = ("likes",)


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['id', 'type', 'status', 'sender', 'recipient', 'blog', 'created_at']
    list_filter = ['type', 'status']
    search_fields = ['sender__username', 'recipient__username', 'message']
