from django.contrib import admin

from users.principal import Principal
from .models import Skill, StudentProfile, StudentSkill, EmployerProfile
from .services import verify_employer


class StudentSkillInline(admin.TabularInline):
    model = StudentSkill
    extra = 0
    raw_id_fields = ('skill',)


@admin.register(Skill)
class SkillAdmin(admin.ModelAdmin):
    list_display = ('name', 'category', 'created_at')
    list_filter = ('category',)
    search_fields = ('name',)


@admin.register(StudentProfile)
class StudentProfileAdmin(admin.ModelAdmin):
    list_display = ('user_email', 'education_summary', 'year_of_study', 'is_profile_visible')
    list_filter = ('year_of_study', 'is_profile_visible')
    search_fields = ('user__email', 'institution', 'program')
    readonly_fields = ('created_at', 'updated_at')
    raw_id_fields = ('user',)
    inlines = [StudentSkillInline]

    fieldsets = (
        ('Personal Info', {'fields': ('user', 'bio', 'is_profile_visible')}),
        ('Education', {'fields': ('institution', 'program', 'year_of_study')}),
        ('Documents', {'fields': ('cv_url',)}),
        ('Dates', {'fields': ('created_at', 'updated_at')}),
    )

    @admin.display(description='User Email')
    def user_email(self, obj):
        return obj.user.email

    @admin.display(description='Education')
    def education_summary(self, obj):
        return f"{obj.program or 'Undeclared'} at {obj.institution or 'Unknown'}"


@admin.register(EmployerProfile)
class EmployerProfileAdmin(admin.ModelAdmin):
    list_display = ('company_name', 'industry', 'is_verified', 'account_status', 'location')
    list_filter = ('industry', 'is_verified')
    search_fields = ('company_name', 'user__email', 'location')
    readonly_fields = ('is_verified', 'created_at', 'updated_at')
    raw_id_fields = ('user',)
    actions = ['verify_selected']

    fieldsets = (
        ('Company Info', {'fields': ('user', 'company_name', 'description', 'industry')}),
        ('Contact', {'fields': ('website', 'logo_url', 'location', 'contact_phone')}),
        ('Verification', {'fields': ('is_verified',)}),
        ('Dates', {'fields': ('created_at', 'updated_at')}),
    )

    @admin.display(description='Account')
    def account_status(self, obj):
        return obj.user.get_status_display()

    @admin.action(description='Verify selected employers and activate their accounts')
    def verify_selected(self, request, queryset):
        # Site staff act as admins; the flag and the account status move together
        principal = Principal(user_id=request.user.pk, role='admin')
        for profile in queryset:
            verify_employer(principal, profile.id)
        self.message_user(request, f"Verified {queryset.count()} employer(s).")
