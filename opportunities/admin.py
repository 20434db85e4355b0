from django.contrib import admin
from .models import Opportunity, OpportunitySkill, SavedOpportunity, Application


class OpportunitySkillInline(admin.TabularInline):
    model = OpportunitySkill
    extra = 0
    raw_id_fields = ('skill',)


@admin.register(Opportunity)
class OpportunityAdmin(admin.ModelAdmin):
    list_display = ('title', 'employer', 'location_type', 'is_active', 'is_verified', 'deadline')
    list_filter = ('is_active', 'is_verified', 'location_type', 'category')
    search_fields = ('title', 'employer__company_name')
    inlines = [OpportunitySkillInline]


@admin.register(Application)
class ApplicationAdmin(admin.ModelAdmin):
    list_display = ('opportunity_title', 'student', 'status', 'applied_at', 'completed_at')
    list_filter = ('status',)
    search_fields = ('student__user__email', 'opportunity_title')
    raw_id_fields = ('student', 'opportunity', 'certificate')


@admin.register(SavedOpportunity)
class SavedOpportunityAdmin(admin.ModelAdmin):
    list_display = ('student', 'opportunity', 'saved_at')
    raw_id_fields = ('student', 'opportunity')
